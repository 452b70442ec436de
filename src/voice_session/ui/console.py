"""Console UI using Rich library"""

from rich.console import Console
from rich.panel import Panel
from typing import Dict, Optional

from ..session import Notice
from ..state import SessionState

NOTICE_STYLES = {
    "initialized": ("🌟", "cyan"),
    "activated": ("🧠", "green"),
    "hibernating": ("🌙", "blue"),
    "offline": ("🔴", "red"),
    "mic_denied": ("🎤", "red"),
    "service_blocked": ("🚫", "red"),
    "network_error": ("🌐", "yellow"),
    "start_failed": ("❌", "red"),
    "config_required": ("⚙️", "yellow"),
    "command_failed": ("🚫", "red"),
}

KEY_STATUS_EMOJI = {
    "success": "✅",
    "warning": "⚠️",
    "error": "❌",
    "missing": "⭕",
    "not_tested": "⏸️",
}

STATE_LABELS = {
    SessionState.IDLE: "[dim]💤 Idle[/dim]",
    SessionState.STANDBY: "[dim cyan]👂 Standby[/dim cyan]",
    SessionState.ACTIVE: "[green]🎤 Listening...[/green]",
    SessionState.PROCESSING: "[blue]🤔 Processing...[/blue]",
    SessionState.SPEAKING: "[magenta]🔊 Speaking...[/magenta]",
}


class AssistantUI:
    """Rich-based console UI for the assistant"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def show_banner(self, server_url: str, wake_word: str):
        """Show startup banner"""
        banner = f"""
[bold cyan]SP.AI Neural Interface[/bold cyan]

[dim]Server:[/dim] {server_url}

[yellow]Say "{wake_word.upper()}" to activate[/yellow]
[dim]Type /keys, /test, /stop, /restart or /quit[/dim]
        """
        self.console.print(Panel(banner.strip(), border_style="cyan"))

    def show_notice(self, notice: Notice):
        """Show a session or assistant notification"""
        emoji, style = NOTICE_STYLES.get(notice.kind, ("ℹ️", "white"))
        line = f"{emoji} [bold {style}]{notice.title}[/bold {style}] [dim]{notice.description}[/dim]"
        if notice.action == "restart":
            line += " [cyan](type /restart)[/cyan]"
        self.console.print(line)

    def show_state(self, state: SessionState):
        self.console.print(STATE_LABELS[state])

    def show_user_message(self, text: str):
        """Show user's transcribed message"""
        self.console.print(Panel(f"[bold green]You:[/bold green] {text}", border_style="green"))

    def show_assistant_message(self, text: str, tools_used: Optional[list] = None):
        """Show assistant's response"""
        self.console.print(Panel(f"[bold cyan]SP.AI:[/bold cyan] {text}", border_style="cyan"))

        # Reasoning is always used, only show the interesting tools
        tools = [t for t in (tools_used or []) if t != "openai_gpt"]
        if tools:
            self.console.print(f"[dim]🔧 Tools: {', '.join(tools)}[/dim]")

    def show_key_results(self, results: Dict[str, Dict[str, str]]):
        """Show one line per provider key test"""
        for provider, result in results.items():
            emoji = KEY_STATUS_EMOJI.get(result.get("status", ""), "❓")
            self.console.print(f"{emoji} [bold]{provider.upper()} Test[/bold] {result.get('message', '')}")

    def show_error(self, error: str):
        """Show error message"""
        self.console.print(Panel(f"[bold red]Error:[/bold red] {error}", border_style="red"))

    def show_info(self, message: str):
        """Show info message"""
        self.console.print(f"[dim]{message}[/dim]")
