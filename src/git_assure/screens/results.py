"""Results screen — score banner, risk factors and the full report."""

from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Markdown,
    Static,
    TabbedContent,
    TabPane,
)

from git_assure.models import AnalysisResult


class ResultsScreen(Screen):
    """Analysis results in two tabs."""

    CSS = """
    ResultsScreen {
        layout: vertical;
    }
    #results-header {
        height: 3;
        background: $primary;
        color: $text;
        text-align: center;
        padding: 1 2;
        text-style: bold;
    }
    #factor-table {
        height: auto;
        margin: 1 0;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("b", "go_back", "Back"),
    ]

    RATING_ICONS = {"Low": "🟢", "Medium": "🟠", "High": "🔴"}

    def __init__(self, repository: str, result: AnalysisResult, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.repository = repository
        self.result = result

    def compose(self) -> ComposeResult:
        icon = self.RATING_ICONS.get(self.result.rating, "⚪")
        yield Header(show_clock=True)
        yield Static(
            f"  📊  {self.repository}  ·  {icon} {self.result.rating} risk"
            f"  ·  score {self.result.score}  ",
            id="results-header",
        )
        with TabbedContent("⚠ Risk Factors", "📄 Report"):
            with TabPane("⚠ Risk Factors"):
                table = DataTable(id="factor-table")
                table.add_columns("Weight", "Risk Factor")
                for factor in self.result.risk_factors:
                    table.add_row(f"+{factor.weight}", factor.message)
                yield table
            with TabPane("📄 Report"):
                yield Markdown(self.result.markdown)
        yield Footer()

    def action_go_back(self) -> None:
        self.app.pop_screen()
