"""Market Lab CLI Application.

A Textual-based terminal interface for playing Market Lab.

Screens:
- Market screen: scenario briefing, sector prices, portfolio and hypotheses
- Analysis screen: choose sectors, metrics and a test for a hypothesis
- Trade modal: enter a quantity to buy or sell
- Scenario summary: end-of-scenario report
"""

from __future__ import annotations

import logging
from typing import Optional

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.logging import TextualHandler
from textual.screen import Screen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    OptionList,
    Rule,
    Select,
    Static,
)
from textual.widgets.option_list import Option

from marketlab.engine import (
    AutoProgressDriver,
    GameEngine,
    HypothesisAnalysis,
    SimulationContext,
    build_scenario_performance,
)
from marketlab.engine.validator import CATEGORICAL_METRIC_NAMES, NUMERICAL_METRIC_NAMES
from marketlab.models import GroupChange, TestKind
from marketlab.parameters import TICK_INTERVAL_MS
from marketlab.storage import get_log_level

logger = logging.getLogger(__name__)


# =============================================================================
# Theme and Styles
# =============================================================================

CSS = """
Screen {
    background: $surface;
}

#status-bar {
    dock: top;
    height: 1;
    background: $primary-darken-2;
    color: $text;
    padding: 0 1;
}

.panel {
    border: solid $primary;
    padding: 0 1;
}

.panel-title {
    text-style: bold;
    color: $secondary;
}

#briefing-panel {
    width: 100%;
    height: auto;
    max-height: 10;
}

#bottom-row {
    height: 1fr;
    layout: horizontal;
}

#sectors-panel {
    width: 2fr;
}

#side-panel {
    width: 1fr;
}

#hypothesis-list {
    height: 1fr;
}

.modal-container {
    width: 60;
    height: auto;
    border: solid green;
    padding: 1 2;
}

#modal-root {
    align: center middle;
}

.menu-button {
    width: 100%;
    margin: 1 0 0 0;
}

.change-improved {
    color: $success;
}

.change-worsened {
    color: $error;
}

#analysis-result {
    border: solid $warning;
    padding: 1;
    min-height: 5;
}
"""

METRIC_CHOICES = NUMERICAL_METRIC_NAMES + CATEGORICAL_METRIC_NAMES


def format_money(value: float) -> str:
    return f"{value:,.2f}"


# =============================================================================
# Trade Modal
# =============================================================================


class TradeModal(Screen):
    """Ask for a quantity to buy or sell; dismisses with the quantity or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, verb: str, sector_name: str, price: float, held: int = 0) -> None:
        super().__init__()
        self.verb = verb
        self.sector_name = sector_name
        self.price = price
        self.held = held

    def compose(self) -> ComposeResult:
        with Container(id="modal-root"):
            with Vertical(classes="modal-container"):
                yield Static(f"{self.verb.upper()} {self.sector_name}", classes="panel-title")
                yield Static(f"Price: {format_money(self.price)}   Held: {self.held}")
                yield Input(placeholder="Quantity", id="quantity-input", type="integer")
                yield Button(self.verb.capitalize(), id="confirm", classes="menu-button", variant="success")

    def on_mount(self) -> None:
        self.query_one("#quantity-input", Input).focus()

    def _submit(self) -> None:
        raw = self.query_one("#quantity-input", Input).value.strip()
        if not raw.isdigit() or int(raw) <= 0:
            self.notify("Enter a positive whole number", severity="error")
            return
        self.dismiss(int(raw))

    @on(Input.Submitted, "#quantity-input")
    def quantity_submitted(self) -> None:
        self._submit()

    @on(Button.Pressed, "#confirm")
    def confirm_pressed(self) -> None:
        self._submit()

    def action_cancel(self) -> None:
        self.dismiss(None)


# =============================================================================
# Analysis Screen
# =============================================================================


class AnalysisScreen(Screen):
    """Test one hypothesis: pick sectors and metrics, then run a test."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
        Binding("t", "run_t_test", "T-Test"),
        Binding("c", "run_chi_square", "Chi-Square"),
        Binding("h", "buy_hint", "Hint"),
    ]

    def __init__(self, analysis: HypothesisAnalysis) -> None:
        super().__init__()
        self.analysis = analysis

    def compose(self) -> ComposeResult:
        hypothesis = self.analysis.hypothesis
        sector_options = [(s.name, s.name) for s in self.analysis.context.sectors]
        metric_options = [(m, m) for m in METRIC_CHOICES]
        tools = self.analysis.engine.state.available_tools

        yield Header()
        with VerticalScroll():
            with Vertical(classes="panel"):
                yield Static("HYPOTHESIS", classes="panel-title")
                yield Static(hypothesis.statement if hypothesis else "No hypothesis selected", id="hypothesis-text")
            with Horizontal():
                yield Select(sector_options, prompt="Sector A", id="sector-a")
                yield Select(sector_options, prompt="Sector B", id="sector-b")
            with Horizontal():
                yield Select(metric_options, prompt="Metric A", id="metric-a")
                yield Select(metric_options, prompt="Metric B", id="metric-b")
            with Horizontal():
                yield Button("T-Test", id="run-t-test", variant="primary", disabled="T-Test" not in tools)
                yield Button("Chi-Square", id="run-chi-square", variant="primary")
                yield Button("Buy hint", id="buy-hint", variant="warning")
            yield Static("Choose two sectors and metrics, then run a test.", id="analysis-result")
            yield Static("", id="hint-text")
        yield Footer()

    def _selected(self, widget_id: str) -> Optional[str]:
        value = self.query_one(f"#{widget_id}", Select).value
        if value is Select.BLANK or value is None:
            return None
        return str(value)

    def run_selected_test(self, kind: TestKind) -> None:
        sector_a = self._selected("sector-a")
        sector_b = self._selected("sector-b")
        metric_a = self._selected("metric-a")
        metric_b = self._selected("metric-b")
        output = self.query_one("#analysis-result", Static)
        if not (sector_a and sector_b and metric_a and metric_b):
            output.update("Please select both sectors and metrics before running a statistical test.")
            return

        run = self.analysis.run_analysis(kind, [metric_a, metric_b], (sector_a, sector_b))
        lines = []
        if run.result is not None:
            result = run.result
            verdict = "significant" if result.significant else "not significant"
            lines.append(f"{result.label}: statistic={result.statistic:.3f}  p={result.p_value:.4f}  ({verdict})")
        if not run.verdict.is_valid and run.verdict.error_message:
            lines.append(run.verdict.error_message)
        output.update("\n".join(lines))

    @on(Button.Pressed, "#run-t-test")
    def t_test_pressed(self) -> None:
        self.run_selected_test(TestKind.T_TEST)

    @on(Button.Pressed, "#run-chi-square")
    def chi_square_pressed(self) -> None:
        self.run_selected_test(TestKind.CHI_SQUARE)

    @on(Button.Pressed, "#buy-hint")
    def hint_pressed(self) -> None:
        self.action_buy_hint()

    def action_run_t_test(self) -> None:
        self.run_selected_test(TestKind.T_TEST)

    def action_run_chi_square(self) -> None:
        self.run_selected_test(TestKind.CHI_SQUARE)

    def action_buy_hint(self) -> None:
        cost = self.analysis.engine.current_hint_cost()
        hint = self.analysis.purchase_hint()
        if hint is None:
            self.notify(f"Not enough capital. You need {cost:.0f} coins for this hint.", severity="error")
            return
        self.query_one("#hint-text", Static).update(hint)

    def action_go_back(self) -> None:
        self.app.pop_screen()


# =============================================================================
# Scenario Summary
# =============================================================================


class ScenarioSummaryScreen(Screen):
    """End-of-scenario report; continuing moves to the next scenario."""

    BINDINGS = [
        Binding("enter", "continue", "Continue"),
    ]

    def __init__(self, engine: GameEngine) -> None:
        super().__init__()
        self.engine = engine

    def compose(self) -> ComposeResult:
        report = build_scenario_performance(self.engine)
        yield Header()
        with VerticalScroll():
            with Vertical(classes="panel"):
                yield Static(f"SCENARIO {report.scenario_index + 1} COMPLETE", classes="panel-title")
                yield Static(
                    f"Start: {format_money(report.starting_value)}   "
                    f"End: {format_money(report.ending_value)}   "
                    f"Profit: {format_money(report.profit)} ({report.profit_percentage:+.2f}%)"
                )
                yield Static(
                    f"Decisions: {report.correct_decisions} correct, {report.incorrect_decisions} incorrect"
                )
            with Vertical(classes="panel"):
                yield Static("SECTOR OUTLOOK", classes="panel-title")
                for entry in report.sector_performance:
                    classes = ""
                    if entry.change == GroupChange.IMPROVED:
                        classes = "change-improved"
                    elif entry.change == GroupChange.WORSENED:
                        classes = "change-worsened"
                    yield Static(
                        f"{entry.sector}: {entry.previous_group.value} -> {entry.current_group.value}",
                        classes=classes,
                    )
            label = "Finish" if self.engine.is_last_scenario() else "Next scenario"
            yield Button(label, id="continue", classes="menu-button", variant="success")
        yield Footer()

    @on(Button.Pressed, "#continue")
    def continue_pressed(self) -> None:
        self.action_continue()

    def action_continue(self) -> None:
        self.dismiss(True)


# =============================================================================
# Market Screen
# =============================================================================


class MarketScreen(Screen):
    """Main game screen: briefing, sectors, portfolio and hypotheses."""

    BINDINGS = [
        Binding("space", "toggle_pause", "Play/Pause"),
        Binding("n", "step", "Step"),
        Binding("b", "buy", "Buy"),
        Binding("s", "sell", "Sell"),
        Binding("a", "analyze", "Analyze"),
        Binding("h", "buy_hint", "Hint"),
        Binding("r", "reset", "Reset"),
    ]

    def __init__(self, engine: GameEngine, driver: AutoProgressDriver, analysis: HypothesisAnalysis) -> None:
        super().__init__()
        self.engine = engine
        self.driver = driver
        self.analysis = analysis
        self._summary_open = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="status-bar")
        with VerticalScroll(id="briefing-panel", classes="panel"):
            yield Static("MARKET SITUATION", classes="panel-title")
            yield Static("", id="briefing-text")
        with Horizontal(id="bottom-row"):
            with Vertical(id="sectors-panel", classes="panel"):
                yield Static("SECTORS", classes="panel-title")
                yield DataTable(id="sector-table", cursor_type="row")
            with Vertical(id="side-panel", classes="panel"):
                yield Static("PORTFOLIO", classes="panel-title")
                yield Static("", id="portfolio-text")
                yield Rule()
                yield Static("HYPOTHESES (enter to analyze)", classes="panel-title")
                yield OptionList(id="hypothesis-list")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#sector-table", DataTable)
        table.add_columns("Sector", "Price", "Held", "Trend")
        self.set_interval(TICK_INTERVAL_MS / 1000.0, self.on_tick)
        self.update_display()

    @property
    def selected_sector(self) -> Optional[str]:
        sectors = self.engine.context.sectors
        row = self.query_one("#sector-table", DataTable).cursor_row
        if 0 <= row < len(sectors):
            return sectors[row].name
        return None

    def on_tick(self) -> None:
        advanced = self.driver.tick()
        if advanced:
            self.update_display()
        if self.engine.state.show_scenario_completion_popup and not self._summary_open:
            self.show_summary()

    def show_summary(self) -> None:
        self._summary_open = True
        self.update_display()
        self.app.push_screen(ScenarioSummaryScreen(self.engine), self.summary_closed)

    def summary_closed(self, _result: Optional[bool]) -> None:
        self._summary_open = False
        if not self.driver.finish_scenario():
            self.notify("All market situations complete. Press r to play again.", timeout=10)
        self.update_display()

    def update_display(self) -> None:
        state = self.engine.state
        paused = "PAUSED" if state.is_auto_progress_paused else "RUNNING"
        self.query_one("#status-bar", Static).update(
            f"Level {self.engine.level}/{self.engine.context.scenario_count} | "
            f"Step {state.steps_in_current_situation} | "
            f"Cash {format_money(state.capital)} | "
            f"Total {format_money(state.total_value())} | "
            f"P/L {format_money(state.profit)} | {paused}"
        )

        view = state.market_situation
        briefing = view.description
        if view.recommended_tool:
            briefing += f"\n\nRecommended tool: {view.recommended_tool}"
        self.query_one("#briefing-text", Static).update(briefing)

        table = self.query_one("#sector-table", DataTable)
        cursor = table.cursor_row
        table.clear()
        for sector in self.engine.context.sectors:
            history = state.price_history.get(sector.name, [])
            trend = ""
            if len(history) >= 2:
                trend = "up" if history[-1] > history[-2] else "down" if history[-1] < history[-2] else "flat"
            holding = state.get_holding(sector.name)
            table.add_row(
                f"{sector.icon} {sector.name}".strip(),
                format_money(state.price_of(sector.name, sector.current_price)),
                str(holding.quantity if holding else 0),
                trend,
            )
        if 0 <= cursor < len(self.engine.context.sectors):
            table.move_cursor(row=cursor)

        lines = [
            f"{item.sector.name}: {item.quantity} @ {format_money(item.purchase_price)}"
            for item in state.portfolio
        ]
        self.query_one("#portfolio-text", Static).update("\n".join(lines) or "No holdings")

        option_list = self.query_one("#hypothesis-list", OptionList)
        option_list.clear_options()
        for index, hypothesis in enumerate(self.engine.current_situation.hypotheses):
            option_list.add_option(Option(hypothesis.statement, id=str(index)))

    @on(OptionList.OptionSelected, "#hypothesis-list")
    def hypothesis_selected(self, event: OptionList.OptionSelected) -> None:
        self.analysis.select_hypothesis(int(str(event.option.id)))
        self.app.push_screen(AnalysisScreen(self.analysis))

    def action_toggle_pause(self) -> None:
        self.engine.toggle_auto_progress()
        self.update_display()

    def action_step(self) -> None:
        self.engine.advance_time()
        self.driver.check_completion()
        self.update_display()

    def action_buy(self) -> None:
        name = self.selected_sector
        if name is None:
            return
        state = self.engine.state
        holding = state.get_holding(name)

        def bought(quantity: Optional[int]) -> None:
            if quantity is None:
                return
            if not self.analysis.record_purchase(name, quantity):
                self.notify("Not enough capital for that purchase", severity="error")
            self.update_display()

        price = state.price_of(name)
        self.app.push_screen(TradeModal("buy", name, price, holding.quantity if holding else 0), bought)

    def action_sell(self) -> None:
        name = self.selected_sector
        holding = self.engine.state.get_holding(name) if name else None
        if holding is None:
            self.notify("You do not hold this sector", severity="warning")
            return

        def sold(quantity: Optional[int]) -> None:
            if quantity is None:
                return
            if not self.engine.sell(name, quantity):
                self.notify(f"You only hold {holding.quantity}", severity="error")
            self.update_display()

        price = self.engine.state.price_of(name)
        self.app.push_screen(TradeModal("sell", name, price, holding.quantity), sold)

    def action_analyze(self) -> None:
        if self.analysis.hypothesis is None:
            self.analysis.select_hypothesis(0)
        self.app.push_screen(AnalysisScreen(self.analysis))

    def action_buy_hint(self) -> None:
        cost = self.engine.current_hint_cost()
        hint = self.analysis.purchase_hint()
        if hint is None:
            self.notify(f"Not enough capital. You need {cost:.0f} coins for this hint.", severity="error")
            return
        self.notify(hint, title="Market analysis", timeout=15)
        self.update_display()

    def action_reset(self) -> None:
        self.engine.reset()
        self.notify("New game started")
        self.update_display()


# =============================================================================
# Main Application
# =============================================================================


class MarketLabApp(App):
    """Main Market Lab CLI application."""

    TITLE = "Market Lab"
    SUB_TITLE = "Test hypotheses, trade sectors"
    CSS = CSS

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True, priority=True),
    ]

    def __init__(self, context: Optional[SimulationContext] = None) -> None:
        super().__init__()
        self.context = context if context is not None else SimulationContext.from_repository()
        self.engine = GameEngine(self.context)
        self.driver = AutoProgressDriver(self.engine)
        self.analysis = HypothesisAnalysis(self.engine)

    def on_mount(self) -> None:
        """Show the market as soon as the app starts."""
        logger.info(f"Market Lab started with {self.context.scenario_count} market situations")
        self.push_screen(MarketScreen(self.engine, self.driver, self.analysis))


def main() -> None:
    """Entry point for the CLI application.

    Log output goes to the Textual devtools console:
        1. In one terminal: textual console
        2. In another terminal: MARKETLAB_LOG_LEVEL=DEBUG textual run --dev marketlab.cli.app:MarketLabApp
    """
    logging.basicConfig(level=get_log_level(), handlers=[TextualHandler()])
    app = MarketLabApp()
    app.run()


if __name__ == "__main__":
    main()
