import subprocess
from importlib.metadata import PackageNotFoundError, version


def get_git_version():
    try:
        return subprocess.check_output(
            ["git", "describe", "--tags", "--always"], stderr=subprocess.DEVNULL
        ).strip().decode("utf-8")
    except (OSError, subprocess.CalledProcessError):
        pass
    try:
        return version("generic-avatar")
    except PackageNotFoundError:
        return "unknown"


APP_VERSION = get_git_version()
