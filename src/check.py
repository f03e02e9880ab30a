import logging
import shutil
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Union


class MissingDependencyError(FileNotFoundError):
    def __init__(self, command: str):
        super().__init__(f"Dependency '{command}' is missing.")
        self.command = command


def missing_dependencies(commands: Iterable[str]) -> List[str]:
    missing = []
    for command in commands:
        logging.debug(f"Checking for dependency '{command}'.")
        if shutil.which(command) is None and command not in missing:
            missing.append(command)
    return missing


def check_dependencies(commands: Iterable[str]):
    missing = missing_dependencies(commands)
    if missing:
        raise MissingDependencyError(missing[0])


def usable_input_file(input_file: Optional[Union[Path, str]]) -> bool:
    if input_file is None:
        return False
    path = Path(input_file)
    return path.is_file() and path.stat().st_size > 0


if __name__ == "__main__":
    commands = sys.argv[1:] or ["ffmpeg"]
    missing = missing_dependencies(commands)
    for command in missing:
        print(f"Dependency '{command}' is missing.")
    if not missing:
        print(f"Found all dependencies: {', '.join(commands)}")
    sys.exit(1 if missing else 0)
