"""The configuration and synthesis core must not pull in the UI."""

import os
import subprocess
import sys
from pathlib import Path

CORE_MODULES = [
    "o3plot",
    "o3plot.plot_config",
    "o3plot.plot_view",
    "o3plot.api",
    "o3plot.export",
]


def test_core_modules_do_not_import_nicegui():
    src_dir = Path(__file__).resolve().parents[2] / "src"
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in [str(src_dir), env.get("PYTHONPATH", "")] if p)
    code = (
        "import sys\n"
        + "".join(f"import {m}\n" for m in CORE_MODULES)
        + "print('nicegui' in sys.modules)\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", code], capture_output=True, text=True, check=True, env=env
    )
    assert result.stdout.strip() == "False"
