"""code-stats-ls - Code::Stats XP reporting for any LSP-capable editor."""

__app_name__ = "code-stats-ls"
__version__ = "0.4.0"
