from __future__ import annotations

import io
from pathlib import Path

import pytest

SMALL_CATALOG = """Shape,A,d,bf,tf,tw,Ix,Sx,Iy
W12X26,7.65,12.2,6.49,0.38,0.23,,,
W12X40,11.7,11.9,8.01,0.515,0.295,307,51.5,44.1
W14X22,6.49,13.7,5.00,0.335,0.230,199,29.0,7.00
"""


@pytest.fixture(autouse=True)
def _isolated_user_data(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    # Keep settings/logs/user catalogs out of the real profile
    root = tmp_path / "localappdata"
    root.mkdir()
    monkeypatch.setenv("LOCALAPPDATA", str(root))
    return root


@pytest.fixture
def small_catalog():
    from wshape_toolbox.tools.w_shape_lr.shapes_db import load_catalog

    return load_catalog(io.StringIO(SMALL_CATALOG))
