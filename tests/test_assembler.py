"""
Assembler 測試：檔案清單、指標、建置紀錄與背景任務降級。
"""
import asyncio
import time
from unittest.mock import AsyncMock

from airis_codegen.assembler import (
    Assembler,
    component_extension,
    make_file,
    render_preview,
    style_extension,
)
from airis_codegen.config import GenerationConfig, TestingConfig
from airis_codegen.design_extractor import placeholder_scene
from airis_codegen.errors import TaskTimeoutError
from airis_codegen.models import FrameworkOutput, FrameworkTemplate, ProjectStructure, build_status

COMPONENT = """import React from 'react';

const GeneratedComponent: React.FC = () => {
  return <div className="generated-component">Hi</div>;
};

export default GeneratedComponent;
"""


def _output(code=COMPONENT, framework="react", extra=None):
    return FrameworkOutput(
        framework=framework,
        component_code=code,
        style_code=".generated-component { display: flex; }\n",
        template=FrameworkTemplate(dependencies={"react": "^18.2.0"}, scripts={"dev": "vite"}),
        additional_files=extra if extra is not None else {"index.ts": "export { default } from './components/GeneratedComponent';\n"},
    )


def _assemble(output=None, config=None, dispatcher=None):
    assembler = Assembler(dispatcher)
    return asyncio.run(assembler.assemble(
        output or _output(), ProjectStructure(), config or GenerationConfig(), placeholder_scene(), time.monotonic(),
    ))


class TestHelpers:

    def test_component_extension(self):
        assert component_extension("react", True) == ".tsx"
        assert component_extension("react", False) == ".jsx"
        assert component_extension("vue", True) == ".vue"
        assert component_extension("angular", False) == ".js"
        assert style_extension("scss") == ".scss"
        assert style_extension("tailwind") == ".css"

    def test_make_file_descriptor(self):
        f = make_file("src/components/GeneratedComponent.tsx", COMPONENT, ["react"])
        assert f.name == "GeneratedComponent.tsx"
        assert f.extension == ".tsx"
        assert f.language == "typescript"
        assert f.imports == ["react"]
        assert f.exports == ["GeneratedComponent"]
        assert f.size == len(COMPONENT.encode("utf-8"))

    def test_preview_escapes_code(self):
        preview = render_preview(placeholder_scene(), "<div>&</div>")
        assert "&lt;div&gt;&amp;&lt;/div&gt;" in preview
        assert "<svg" in preview


class TestFiles:

    def test_default_file_set(self):
        result = _assemble()
        paths = [f.path for f in result.files]
        assert paths == [
            "src/components/GeneratedComponent.tsx",
            "src/styles/GeneratedComponent.css",
            "src/index.ts",
            "src/types/GeneratedComponent.types.ts",
        ]

    def test_tests_and_readme(self):
        config = GenerationConfig(testing=TestingConfig(unit_tests=True), documentation=True)
        paths = [f.path for f in _assemble(config=config).files]
        assert "src/__tests__/GeneratedComponent.test.tsx" in paths
        assert "README.md" in paths

    def test_structure_lists_emitted_files(self):
        result = _assemble()
        assert "src/components/GeneratedComponent.tsx" in result.structure.components
        assert "src/types/GeneratedComponent.types.ts" in result.structure.types


class TestMetricsAndLogs:

    def test_metrics(self):
        result = _assemble()
        m = result.metrics
        assert m.bundle_size == sum(f.size for f in result.files)
        assert 0 < m.optimized_bundle_size <= m.bundle_size
        assert m.complexity >= 1
        assert 0 <= m.maintainability_index <= 100
        assert m.load_time >= 0
        assert m.performance_score == 75
        assert m.test_coverage == 0

    def test_clean_build_is_success(self):
        result = _assemble()
        assert [log.message for log in result.build_logs] == ["Build validation completed successfully"]
        assert build_status(result.build_logs) == "success"

    def test_missing_react_import_warns(self):
        code = "const GeneratedComponent = () => { React.useMemo(); };\nexport default GeneratedComponent;\n"
        result = _assemble(output=_output(code=code), config=GenerationConfig(typescript=False))
        messages = [log.message for log in result.build_logs]
        assert "Potentially missing import: react" in messages
        assert build_status(result.build_logs) == "warning"

    def test_typed_issue_is_error(self):
        code = "const A: React.FC = () => null;\nexport default A;\n"
        result = _assemble(output=_output(code=code))
        assert any(log.level == "error" and log.message == "React import missing for React.FC type"
                   for log in result.build_logs)
        assert build_status(result.build_logs) == "error"

    def test_validation_issue_logged(self):
        code = "const A = () => {\n"
        result = _assemble(output=_output(code=code, extra={}), config=GenerationConfig(typescript=False))
        assert any(log.level == "error" and log.message == "Unbalanced braces" for log in result.build_logs)
        assert build_status(result.build_logs) == "error"

    def test_complexity_issues_are_warnings(self):
        body = "\n".join(["  const a = 1;"] * 60)
        code = f"export default function GeneratedComponent() {{\n{body}\n}}\n"
        result = _assemble(output=_output(code=code, extra={}), config=GenerationConfig(typescript=False))
        long_fn = [log for log in result.build_logs if log.message.startswith("Long function")]
        assert len(long_fn) == 1
        assert long_fn[0].level == "warn"
        assert build_status(result.build_logs) == "warning"

    def test_css_is_minified_for_optimized_size(self):
        result = _assemble()
        css = next(f for f in result.files if f.extension == ".css")
        assert css.content == ".generated-component { display: flex; }\n"
        assert result.metrics.optimized_bundle_size < result.metrics.bundle_size

    def test_dispatch_failure_runs_locally(self):
        dispatcher = AsyncMock()
        dispatcher.submit.side_effect = TaskTimeoutError("t", "optimize", 1.0)
        local = _assemble()
        remote = _assemble(dispatcher=dispatcher)
        assert [f.path for f in remote.files] == [f.path for f in local.files]
        assert remote.metrics.optimized_bundle_size == local.metrics.optimized_bundle_size
        assert dispatcher.submit.await_count == 3
