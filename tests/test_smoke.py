"""
Smoke tests：驗證套件可匯入、版本與公開 API 存在。
"""


def test_import_package():
    """套件可正常匯入"""
    import airis_codegen
    assert airis_codegen.__version__ == "0.1.0"


def test_public_api():
    """公開 API 可從 airis_codegen 取得"""
    from airis_codegen import (
        GenerationConfig,
        GenerationOrchestrator,
        TaskDispatcher,
        extract_design,
        load_config,
    )
    assert callable(extract_design)
    assert callable(load_config)
    assert GenerationConfig().framework == "react"
    assert hasattr(GenerationOrchestrator, "generate")
    assert hasattr(TaskDispatcher, "submit")


def test_cli_entry_point():
    """CLI main 可匯入"""
    from airis_codegen.cli import main
    assert callable(main)
