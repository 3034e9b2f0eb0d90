"""Home screen — repository input."""

from textual import on
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, Static

from git_assure.identity import IdentityError, parse_repository


class HomeScreen(Screen):
    """Initial screen to collect the repository to analyze."""

    CSS = """
    HomeScreen {
        align: center middle;
    }
    #home-container {
        width: 72;
        height: auto;
        padding: 1 4;
        border: round $primary;
        background: $surface;
    }
    #title {
        text-align: center;
        color: $accent;
        text-style: bold;
    }
    #subtitle {
        text-align: center;
        color: $text-muted;
        margin-bottom: 2;
    }
    .field-label {
        margin-top: 1;
        color: $text;
    }
    #start-btn {
        margin-top: 2;
        width: 100%;
    }
    #error-label {
        color: $error;
        text-align: center;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="home-container"):
                yield Static("GIT-ASSURE", id="title")
                yield Static(
                    "Sustainability and security risk of any GitHub repository",
                    id="subtitle",
                )
                yield Label("Repository (owner/repo or URL):", classes="field-label")
                yield Input(placeholder="e.g. excalidraw/excalidraw", id="repo-input")
                yield Button("▶  Start Analysis", id="start-btn", variant="primary")
                yield Label("", id="error-label")
        yield Footer()

    def on_mount(self) -> None:
        """Focus the repo input on screen mount so paste works immediately."""
        self.query_one("#repo-input", Input).focus()

    @on(Button.Pressed, "#start-btn")
    def start_analysis(self) -> None:
        repo = self.query_one("#repo-input", Input).value.strip()
        try:
            identity = parse_repository(repo)
        except IdentityError:
            self.query_one("#error-label", Label).update(
                "⚠  Enter a valid owner/repo (e.g. excalidraw/excalidraw)"
            )
            return
        self.app.run_analysis(identity.slug)  # type: ignore[attr-defined]

    @on(Input.Submitted, "#repo-input")
    def submit_on_enter(self) -> None:
        self.start_analysis()
