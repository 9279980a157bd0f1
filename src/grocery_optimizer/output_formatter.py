"""Output formatting for CLI and programmatic use."""

import json
from datetime import date, datetime
from typing import Any
from uuid import UUID

from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for output."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


STATUS_STYLES = {
    "Stock Up": "red",
    "Running Low": "yellow",
    "Good": "green",
    "Unknown": "dim",
}


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False, currency: str = "€"):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
            currency: Symbol used when rendering amounts
        """
        self.json_mode = json_mode
        self.currency = currency
        self.console = Console()

    def money(self, value: float | None) -> str:
        if value is None:
            return "-"
        return f"{self.currency}{value:.2f}"

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "expenses" in payload and isinstance(payload["expenses"], dict):
            self._render_expense_list(payload["expenses"])
        elif "expenses" in payload:
            self._render_added(payload)
        elif "expense" in payload:
            self._render_expense(payload["expense"])
        elif "bill_detail" in payload:
            self._render_bill(payload["bill_detail"])
        elif "spending" in payload:
            self._render_spending(payload["spending"])
        elif "comparison" in payload:
            self._render_comparison(payload["comparison"])
        elif "settlement" in payload:
            self._render_settlement(payload["settlement"])
        elif "restock" in payload:
            self._render_restock(payload["restock"])
        elif "plan" in payload:
            self._render_plan(payload["plan"])
        elif "search" in payload:
            self._render_search(payload["search"])
        elif "insights" in payload:
            self._render_insights(payload["insights"])

    def _render_expense_list(self, expenses: dict) -> None:
        """Render the expense collection."""
        items = expenses["items"]
        if not items:
            self.console.print("[dim]No expenses recorded[/dim]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Date", style="magenta")
        table.add_column("Item", style="cyan", no_wrap=False)
        table.add_column("Store", style="green")
        table.add_column("Category", style="yellow")
        table.add_column("Paid by")
        table.add_column("Owner")
        table.add_column("Amount", justify="right")

        for item in items:
            table.add_row(
                str(item["id"])[:8],
                str(item["date"]),
                item["description"],
                item.get("store") or "-",
                item.get("category", "Other"),
                item["payer"],
                item["owner"],
                self.money(item["amount"]),
            )

        self.console.print(table)
        self.console.print(
            f"\nTotal items: {expenses['total_items']}  "
            f"Total: {self.money(expenses['total_amount'])}"
        )

    def _render_added(self, payload: dict) -> None:
        """Render newly added expenses and any review warnings."""
        for item in payload["expenses"]:
            short_id = str(item["id"])[:8]
            line = f"  [dim]{short_id}[/dim] {item['description']} {self.money(item['amount'])}"
            original = item.get("original_amount")
            if original is not None and original != item["amount"]:
                line += f" [dim](was {self.money(original)})[/dim]"
            self.console.print(line)

        for warning in payload.get("warnings", []):
            self.warning(f"{warning['description']}: {warning['reason']}")

    def _render_expense(self, item: dict) -> None:
        """Render a single expense."""
        panel_content = f"""[bold]{item["description"]}[/bold]

Amount: {self.money(item["amount"])}
Date: {item["date"]}
Store: {item.get("store") or "Not specified"}
Category: {item.get("category", "Other")}
Paid by: {item["payer"]}
Owner: {item["owner"]}"""

        if item.get("original_amount") is not None:
            panel_content += f"\nOriginal: {self.money(item['original_amount'])}"

        panel = Panel(panel_content, title="Item Details", border_style="green")
        self.console.print(panel)

    def _render_bill(self, bill: dict) -> None:
        """Render one shopping visit."""
        panel = Panel(
            f"""[bold]{bill["store"]}[/bold]

Date: {bill["date"]}
Items: {len(bill["items"])}
Total: {self.money(bill["total"])}
Paid by: {", ".join(bill["payers"]) or "-"}
Owners: {", ".join(bill["owners"]) or "-"}""",
            title="Bill Details",
            border_style="green",
        )
        self.console.print(panel)

        table = Table(show_header=True)
        table.add_column("Item")
        table.add_column("Owner")
        table.add_column("Amount", justify="right")
        for item in bill["items"]:
            table.add_row(item["description"], item["owner"], self.money(item["amount"]))
        self.console.print(table)

    def _render_spending(self, spending: dict) -> None:
        """Render the spending dashboard."""
        self.console.print(
            Panel(
                f"""Total spent: [bold]{self.money(spending["total_spending"])}[/bold]
Items: {spending["expense_count"]}
Bills: {spending["bill_count"]}""",
                title="Spending Summary",
                border_style="cyan",
            )
        )

        if spending["categories"]:
            table = Table(title="By Category", show_header=True, header_style="bold cyan")
            table.add_column("Category", style="yellow")
            table.add_column("Items", justify="right")
            table.add_column("Total", justify="right")
            table.add_column("%", justify="right")
            for cat in spending["categories"]:
                table.add_row(
                    cat["category"],
                    str(cat["item_count"]),
                    self.money(cat["total"]),
                    f"{cat['percentage']:.1f}%",
                )
            self.console.print(table)

        if spending["top_stores"]:
            table = Table(title="Top Stores", show_header=True, header_style="bold cyan")
            table.add_column("Store", style="green")
            table.add_column("Total", justify="right")
            for store in spending["top_stores"]:
                table.add_row(store["store"], self.money(store["total"]))
            self.console.print(table)

    def _render_comparison(self, comparison: dict) -> None:
        """Render matching purchases, cheapest first."""
        matches = comparison["matches"]
        if not matches:
            self.console.print(f"[dim]No purchases matching '{comparison['term']}'[/dim]")
            return

        table = Table(
            title=f"Price Comparison: {comparison['term']}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Item", style="cyan")
        table.add_column("Store", style="green")
        table.add_column("Date", style="magenta")
        table.add_column("Price", justify="right")
        for index, match in enumerate(matches):
            price = self.money(match["amount"])
            if index == 0:
                price = f"[green]{price}[/green]"
            table.add_row(match["description"], match.get("store") or "-", match["date"], price)
        self.console.print(table)

    def _render_settlement(self, settlement: dict) -> None:
        """Render who paid what and who owes whom."""
        table = Table(title="Split Analysis", show_header=True, header_style="bold cyan")
        table.add_column("Person", style="cyan")
        table.add_column("Paid", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Net", justify="right")

        for row in settlement["balances"]:
            if row["settled"]:
                net = "[dim]settled[/dim]"
            elif row["net"] > 0:
                net = f"[green]+{self.money(row['net'])}[/green]"
            else:
                net = f"[red]-{self.money(abs(row['net']))}[/red]"
            table.add_row(row["name"], self.money(row["paid"]), self.money(row["consumed"]), net)

        self.console.print(table)
        if settlement.get("message"):
            self.console.print(f"\n{settlement['message']}")

    def _render_restock(self, restock: dict) -> None:
        """Render restock predictions."""
        items = restock["items"]
        if not items:
            self.console.print("[green]Pantry looks stocked![/green]")
            return

        table = Table(title=restock.get("title", "Restock"), show_header=True)
        table.add_column("Item", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Last bought", justify="right")
        table.add_column("Cycle", justify="right")
        table.add_column("Status")

        for item in items:
            cycle = (
                f"~{item['avg_cycle']}d"
                if item["avg_cycle"] is not None
                else f"{item['generic_shelf_life']}d shelf"
            )
            style = STATUS_STYLES.get(item["status"], "white")
            table.add_row(
                item["name"],
                item["category"],
                f"{item['days_since_last_purchase']}d ago",
                cycle,
                f"[{style}]{item['status']}[/{style}]",
            )
        self.console.print(table)

    def _render_plan(self, plan: dict) -> None:
        """Render a store trip plan."""
        store = plan["store"] or "-"

        if plan["smart_buys"]:
            table = Table(title=f"Best Buys at {store}", show_header=True)
            table.add_column("Item", style="cyan")
            table.add_column("Reason", style="green")
            table.add_column("Avg here", justify="right")
            for item in plan["smart_buys"]:
                table.add_row(item["name"], item["reason"], self.money(item["avg_price_here"]))
            self.console.print(table)
        else:
            self.console.print(f"[dim]No exclusive or best-price items at {store}[/dim]")

        if plan["other_needs"]:
            table = Table(title="Other Needs", show_header=True)
            table.add_column("Item", style="cyan")
            table.add_column("Cheapest at", style="green")
            table.add_column("Avg here", justify="right")
            table.add_column("Save", justify="right")
            for item in plan["other_needs"]:
                here = self.money(item["avg_price_here"]) if item["avg_price_here"] else "new here"
                table.add_row(
                    item["name"],
                    item.get("cheapest_store") or "-",
                    here,
                    self.money(item.get("savings")),
                )
            self.console.print(table)

    def _render_search(self, search: dict) -> None:
        """Render item and bill matches."""
        if not search["items"] and not search["bills"]:
            self.console.print(f"[dim]No results for '{search['query']}'[/dim]")
            return

        if search["bills"]:
            self.console.print("[bold]Bills[/bold]")
            for bill in search["bills"]:
                self.console.print(
                    f"  {bill['store']} {bill['date']}  "
                    f"{bill['count']} items  {self.money(bill['total'])}"
                )

        if search["items"]:
            self.console.print("[bold]Items[/bold]")
            for item in search["items"]:
                self.console.print(
                    f"  {item['description']} ({item['category']})  "
                    f"{self.money(item['amount'])}  [dim]{str(item['id'])[:8]}[/dim]"
                )

    def _render_insights(self, insights: dict) -> None:
        """Render AI spending insights."""
        style = {"positive": "green", "negative": "red"}.get(insights["sentiment"], "cyan")
        self.console.print(Panel(insights["summary"], title="Insights", border_style=style))
        for tip in insights["tips"]:
            self.console.print(f"  • {tip}")

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder))
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Output warning message.

        Args:
            message: Warning message
        """
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
