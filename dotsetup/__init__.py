"""dotsetup — provision a personal zsh + Neovim environment."""

__version__ = "0.1.0"
