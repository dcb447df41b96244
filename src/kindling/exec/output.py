# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import io
from typing import List


def _lines(text: str) -> List[str]:
    return text.splitlines()


def output_lines(cmd) -> List[str]:
    """Run cmd and return its stdout split into lines."""
    buf = io.StringIO()
    cmd.set_stdout(buf)
    cmd.run()
    return _lines(buf.getvalue())


def combined_output_lines(cmd) -> List[str]:
    """Run cmd and return stdout and stderr interleaved, split into lines."""
    buf = io.StringIO()
    cmd.set_stdout(buf)
    cmd.set_stderr(buf)
    cmd.run()
    return _lines(buf.getvalue())


def output(cmd) -> str:
    buf = io.StringIO()
    cmd.set_stdout(buf)
    cmd.run()
    return buf.getvalue()
