import subprocess
from pathlib import Path
from typing import List, Optional, Union


def run_command(
    command: Union[List[str], str],
    shell: bool = False,
    check: bool = True,
    env: Optional[dict] = None,
    cwd: Optional[Union[str, Path]] = None,
) -> subprocess.CompletedProcess:
    return subprocess.run(
        command, shell=shell, check=check, capture_output=True,
        text=True, encoding='utf-8', errors='ignore', env=env, cwd=cwd
    )


def format_command_output(result: subprocess.CompletedProcess) -> str:
    parts = [p.strip() for p in (result.stderr, result.stdout) if p and p.strip()]
    return "\n".join(parts)


def first_line(lines: List[str]) -> Optional[str]:
    for line in lines:
        if line.strip():
            return line.strip()
    return None
