"""
Shell integration installer.

Writes the integration script for a shell into the config directory and
tells the user which line to add to their rc file. Rc files are never
edited automatically.
"""

from importlib import resources
from pathlib import Path
from typing import Dict, Tuple

from shellsuggest.core.configs import CONFIG_DIR

# shell name -> (script resource, rc file hint)
SHELLS: Dict[str, Tuple[str, str]] = {
    "zsh": ("zsh.zsh", "~/.zshrc"),
    "bash": ("bash.bash", "~/.bashrc"),
    "fish": ("fish.fish", "~/.config/fish/config.fish"),
}


def supported_shells() -> Tuple[str, ...]:
    return tuple(sorted(SHELLS))


def load_script(shell: str) -> str:
    """
    Return the integration script text for a shell.

    Raises:
        ValueError: If the shell is not supported
    """
    shell = shell.strip().lower()
    if shell not in SHELLS:
        raise ValueError(
            f"Unsupported shell: {shell}. Supported: {', '.join(supported_shells())}"
        )
    resource, _ = SHELLS[shell]
    return resources.files("shellsuggest.shell").joinpath(resource).read_text(encoding="utf-8")


def install_script(shell: str, target_dir: Path = CONFIG_DIR) -> Tuple[Path, str]:
    """
    Write the integration script and build the line to source it.

    Returns:
        (script path, line to add to the rc file)
    """
    script = load_script(shell)
    resource, _ = SHELLS[shell.strip().lower()]

    target = target_dir / "shell" / resource
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(script, encoding="utf-8")

    return target, f"source {target}"


def rc_file_hint(shell: str) -> str:
    return SHELLS[shell.strip().lower()][1]
