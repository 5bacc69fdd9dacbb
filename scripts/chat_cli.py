#!/usr/bin/env python3
"""Interactive chat CLI for trying out the contract review service."""

import json
import sys

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from contract_guard.models.messages import generate_id


class ChatCLI:
    """Interactive chat interface for the contract review service."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.session_id = generate_id()
        self.console = Console()
        self.client = httpx.Client(timeout=120.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Contract Guard - Interactive Chat[/bold blue]\n"
                "Paste contract text or ask a question about a contract.\n"
                "Commands: /help, /clear, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self._check_key()

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif user_input.lower() == "/help":
                    self._show_help()
                    continue
                elif user_input.lower() == "/clear":
                    self.client.delete(f"{self.base_url}/agents/chat/{self.session_id}")
                    self.session_id = generate_id()
                    self.console.print("[yellow]Session cleared[/yellow]")
                    continue
                elif user_input.strip() == "":
                    continue

                self._send_message(user_input)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _check_key(self) -> None:
        response = self.client.get(f"{self.base_url}/check-open-ai-key")
        if not response.json().get("success"):
            self.console.print("[yellow]The server has no OPENAI_API_KEY set; replies will fail.[/yellow]")

    def _send_message(self, message: str) -> None:
        """Send a message and render the streamed reply."""
        text = ""
        pending: list[dict] = []

        try:
            with self.client.stream(
                "POST", f"{self.base_url}/agents/chat/{self.session_id}", json={"message": message}
            ) as response:
                if response.status_code != 200:
                    response.read()
                    self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
                    return

                for line in response.iter_lines():
                    if not line.startswith("data: "):
                        continue
                    data = line[len("data: ") :]
                    if data == "[DONE]":
                        break

                    chunk = json.loads(data)
                    if chunk["type"] == "text-delta":
                        text += chunk["delta"]
                    elif chunk["type"] == "tool-input-available":
                        pending.append(chunk)
                        self.console.print(f"[dim]Tool call: {chunk['toolName']}({json.dumps(chunk['input'])})[/dim]")
                    elif chunk["type"] == "tool-output-available":
                        pending = [c for c in pending if c["toolCallId"] != chunk["toolCallId"]]
                    elif chunk["type"] in ("tool-output-error", "error"):
                        pending = [c for c in pending if c.get("toolCallId") != chunk.get("toolCallId")]
                        self.console.print(f"[red]{chunk['errorText']}[/red]")

        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return

        if text:
            self._display_response(text)

        for chunk in pending:
            self._ask_decision(chunk)

    def _ask_decision(self, chunk: dict) -> None:
        """Ask the user to approve a tool call that needs confirmation."""
        approved = Confirm.ask(f"Allow [bold]{chunk['toolName']}[/bold] with {json.dumps(chunk['input'])}?")
        response = self.client.post(
            f"{self.base_url}/agents/chat/{self.session_id}/tool-decision",
            json={"toolCallId": chunk["toolCallId"], "approved": approved},
        )
        if response.status_code != 200:
            self.console.print(f"[red]Decision failed: {response.status_code} - {response.text}[/red]")
            return

        part = response.json()
        self.console.print(f"[dim]{part['state']}: {part['output']}[/dim]")

    def _display_response(self, text: str) -> None:
        """Display the assistant reply, pretty-printing JSON analyses."""
        try:
            body = f"```json\n{json.dumps(json.loads(text), indent=2)}\n```"
        except ValueError:
            body = text

        self.console.print(
            Panel(
                Markdown(body),
                title="[bold green]Contract Guard[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /clear - Clear session and start over
• /quit or /exit - Exit the chat

[bold]Example:[/bold]
"The Contractor shall indemnify and hold harmless the Client. This agreement
will automatically renew each year unless cancelled 90 days in advance."

[bold]Tips:[/bold]
• The assistant may ask to file an attorney review; you will be asked to approve it
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    chat.start()


if __name__ == "__main__":
    main()
