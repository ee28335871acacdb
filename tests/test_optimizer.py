"""
Optimizer 測試：各最佳化步驟、套用順序，以及不修改輸入。
"""
import copy

from airis_codegen.config import GenerationConfig, OptimizationConfig
from airis_codegen.models import FrameworkOutput, QualityAssessment
from airis_codegen.optimizer import (
    ACCESSIBILITY,
    CODE_SPLITTING,
    PERFORMANCE,
    TREE_SHAKING,
    Optimizer,
    enhance_accessibility,
    prune_unused_imports,
)

REACT_CODE = """import React, { useState, useEffect } from 'react';

const GeneratedComponent = () => {
  const [on, setOn] = useState(false);
  return (
    <div className="root">
      <button onClick={() => setOn(!on)}>Go</button>
      <img src="/a.png" />
    </div>
  );
};

export default GeneratedComponent;
"""


def _quality(accessibility=95, performance=95):
    return QualityAssessment(categories={"accessibility": accessibility, "performance": performance})


def _config(treeshaking=False, codesplitting=False):
    return GenerationConfig(optimization=OptimizationConfig(treeshaking=treeshaking, codesplitting=codesplitting))


def test_prune_unused_imports():
    pruned = prune_unused_imports(REACT_CODE)
    assert pruned.startswith("import React, { useState } from 'react';")


def test_prune_drops_fully_unused_named_import():
    code = "import { a, b } from 'x';\nconst c = 1;\n"
    assert prune_unused_imports(code) == "const c = 1;\n"


def test_enhance_accessibility_labels_elements():
    out = enhance_accessibility(FrameworkOutput("react", REACT_CODE, ""))
    assert '<div role="main" className="root">' in out.component_code
    assert '<button aria-label="Generated button"' in out.component_code
    assert '<img alt="Generated image" src="/a.png" />' in out.component_code


class TestOptimizer:

    def test_nothing_applied_for_good_output(self):
        output = FrameworkOutput("react", REACT_CODE, "")
        result, applied = Optimizer().optimize(output, _config(), _quality())
        assert applied == []
        assert result.component_code == REACT_CODE

    def test_fixed_order(self):
        output = FrameworkOutput("react", REACT_CODE, "")
        _, applied = Optimizer().optimize(output, _config(True, True), _quality(60, 75))
        assert applied == [TREE_SHAKING, CODE_SPLITTING, ACCESSIBILITY, PERFORMANCE]

    def test_react_patches(self):
        output = FrameworkOutput("react", REACT_CODE, "")
        result, _ = Optimizer().optimize(output, _config(True, True), _quality(60, 75))
        code = result.component_code
        assert "useEffect" not in code
        assert "export { GeneratedComponent };" in code
        assert "export const LazyGeneratedComponent = React.lazy(() => import('./GeneratedComponent'));" in code
        assert "export default React.memo(GeneratedComponent);" in code
        assert 'role="main"' in code

    def test_markup_framework_gets_comment_markers(self):
        output = FrameworkOutput("vue", "<template>\n  <div></div>\n</template>\n", "")
        result, applied = Optimizer().optimize(output, _config(codesplitting=True), _quality(95, 75))
        assert applied == [CODE_SPLITTING, PERFORMANCE]
        assert "<!-- code-splitting:" in result.component_code
        assert "<!-- performance:" in result.component_code

    def test_input_not_mutated(self):
        output = FrameworkOutput("react", REACT_CODE, ".a {}", additional_files={"index.ts": "x"})
        before = copy.deepcopy(output)
        Optimizer().optimize(output, _config(True, True), _quality(10, 10))
        assert output == before

    def test_threshold_is_configurable(self):
        output = FrameworkOutput("react", REACT_CODE, "")
        _, applied = Optimizer(threshold=50).optimize(output, _config(), _quality(60, 75))
        assert applied == []
