# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""Global console instance for Parlance shells and help rendering."""
from rich.console import Console
from rich.theme import Theme

parlance_theme = Theme(
    {
        "usage": "bold",
        "command": "bold cyan",
        "flag": "green",
        "error": "bold red",
        "caret": "red",
        "result": "bright_black",
    }
)

console = Console(theme=parlance_theme)
