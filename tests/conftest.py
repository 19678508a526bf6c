import sys
from pathlib import Path

import pytest

# Flat modules live at the project root, test-vector generators under data/,
# the RTL interpreter beside the tests
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "data"))
sys.path.insert(0, str(project_root / "tests"))

from encoder_spec import EncoderSpec, MuxStyle  # noqa: E402
from encoder_tree import PriorityEncoderGenerator  # noqa: E402


@pytest.fixture
def make_gen():
    def _make(width, prefix_width=4, **kwargs):
        spec = EncoderSpec(suffix="t", width=width, prefix_width=prefix_width, **kwargs)
        return PriorityEncoderGenerator(spec)

    return _make


@pytest.fixture(params=list(MuxStyle), ids=lambda s: s.value)
def mux_style(request):
    return request.param
