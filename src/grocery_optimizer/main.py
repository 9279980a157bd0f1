"""CLI entry point for Grocery Optimizer."""

import json
import logging
import mimetypes
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from .ai_service import AIServiceError, GeminiService, ReceiptParseError
from .analytics import Analytics
from .config import ConfigManager
from .data_store import BackendType, DataStoreProtocol, create_data_store
from .expense_manager import (
    AmbiguousExpenseIdError,
    BillNotFoundError,
    ExpenseManager,
    ExpenseNotFoundError,
)
from .models import SHARED_OWNER, Category
from .output_formatter import OutputFormatter
from .receipt_processor import BillType, default_owner, ReceiptProcessingError, ReceiptProcessor
from .settlement import settlement_message

app = typer.Typer(
    name="grocery",
    help="Grocery expense tracking, cost splitting and restock planning",
    no_args_is_help=True,
)


# Global state for formatter and config (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_store: DataStoreProtocol | None = None
expense_manager: ExpenseManager | None = None
participants: list[str] = []


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_data_store() -> DataStoreProtocol:
    """Get or create the data store using config values."""
    global data_store
    if data_store is None:
        cfg = get_config()
        data_store = create_data_store(
            backend=BackendType(cfg.data.backend),
            data_dir=cfg.data.storage_dir,
        )
    return data_store


def get_expense_manager() -> ExpenseManager:
    """Get or create ExpenseManager instance."""
    global expense_manager
    if expense_manager is None:
        expense_manager = ExpenseManager(get_data_store())
    return expense_manager


def get_participants() -> list[str]:
    """Active participants: CLI overrides, else configuration."""
    return participants or list(get_config().household.participants)


def parse_date(value: str | None, param: str = "date") -> date:
    """Parse an ISO date option, defaulting to today."""
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'", param_hint=param)


def configure_logging(verbose: bool) -> None:
    """Route package log records through Rich on stderr."""
    package_logger = logging.getLogger("grocery_optimizer")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False, log_time_format="[%X]")
        )


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    participant: Annotated[
        list[str] | None,
        typer.Option("--participant", "-P", help="Active participant (repeatable)"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Grocery Optimizer CLI - track grocery spending and split it fairly."""
    global formatter, config, data_store, expense_manager, participants

    configure_logging(verbose)

    # Load config early
    config = ConfigManager()
    formatter = OutputFormatter(json_mode=json_output, currency=config.household.currency_symbol)

    # CLI --data-dir overrides config, which overrides default
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    backend = BackendType(config.data.backend)

    data_store = create_data_store(backend=backend, data_dir=effective_data_dir)
    expense_manager = ExpenseManager(data_store)
    participants = list(participant or [])


@app.command()
def add(
    description: Annotated[str, typer.Argument(help="Item description")],
    amount: Annotated[float, typer.Option("--amount", "-a", help="Amount paid", min=0)],
    store: Annotated[str | None, typer.Option("--store", "-s", help="Store name")] = None,
    category: Annotated[
        Category | None, typer.Option("--category", "-c", help="Grocery category")
    ] = None,
    on: Annotated[str | None, typer.Option("--date", "-d", help="Purchase date YYYY-MM-DD")] = None,
    payer: Annotated[str | None, typer.Option("--by", help="Who paid")] = None,
    owner: Annotated[
        str | None, typer.Option("--owner", "-o", help="Who it is for, or 'Shared'")
    ] = None,
) -> None:
    """Record a purchased item."""
    try:
        cfg = get_config()
        people = get_participants()
        result = get_expense_manager().add_expense(
            description=description,
            amount=amount,
            date=parse_date(on),
            category=category or Category(cfg.defaults.category),
            store=store or cfg.defaults.store,
            payer=payer or cfg.defaults.payer,
            owner=owner or default_owner(people),
        )
        formatter.output(result, result["message"])
    except typer.BadParameter:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def remove(
    expense_id: Annotated[str, typer.Argument(help="Expense ID to remove")],
) -> None:
    """Delete an expense."""
    try:
        result = get_expense_manager().delete_expense(expense_id)
        formatter.output(result, result["message"])
    except ExpenseNotFoundError as e:
        formatter.error(str(e), error_code="EXPENSE_NOT_FOUND")
        raise typer.Exit(code=1)
    except AmbiguousExpenseIdError as e:
        formatter.error(str(e), error_code="AMBIGUOUS_ID")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command(name="list")
def list_expenses(
    store: Annotated[str | None, typer.Option("--store", "-s", help="Filter by store")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Filter by category")
    ] = None,
) -> None:
    """View recorded expenses."""
    try:
        result = get_expense_manager().get_expenses(store=store, category=category)
        formatter.output(result)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def update(
    expense_id: Annotated[str, typer.Argument(help="Expense ID to update")],
    description: Annotated[
        str | None, typer.Option("--description", help="New description")
    ] = None,
    amount: Annotated[float | None, typer.Option("--amount", "-a", help="New amount")] = None,
    store: Annotated[str | None, typer.Option("--store", "-s", help="New store")] = None,
    category: Annotated[
        Category | None, typer.Option("--category", "-c", help="New category")
    ] = None,
    on: Annotated[str | None, typer.Option("--date", "-d", help="New date YYYY-MM-DD")] = None,
    payer: Annotated[str | None, typer.Option("--by", help="New payer")] = None,
    owner: Annotated[str | None, typer.Option("--owner", "-o", help="New owner")] = None,
) -> None:
    """Update fields of an existing expense."""
    try:
        result = get_expense_manager().update_expense(
            expense_id,
            description=description,
            amount=amount,
            store=store,
            category=category,
            date=parse_date(on) if on else None,
            payer=payer,
            owner=owner,
        )
        formatter.output(result, result["message"])
    except ExpenseNotFoundError as e:
        formatter.error(str(e), error_code="EXPENSE_NOT_FOUND")
        raise typer.Exit(code=1)
    except AmbiguousExpenseIdError as e:
        formatter.error(str(e), error_code="AMBIGUOUS_ID")
        raise typer.Exit(code=1)
    except typer.BadParameter:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def owner(
    expense_id: Annotated[str, typer.Argument(help="Expense ID")],
) -> None:
    """Cycle an expense's owner: Shared, then each participant."""
    try:
        result = get_expense_manager().cycle_owner(expense_id, get_participants())
        formatter.output(result, result["message"])
    except ExpenseNotFoundError as e:
        formatter.error(str(e), error_code="EXPENSE_NOT_FOUND")
        raise typer.Exit(code=1)
    except AmbiguousExpenseIdError as e:
        formatter.error(str(e), error_code="AMBIGUOUS_ID")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def demo() -> None:
    """Replace all expenses with a demo shopping history."""
    try:
        result = get_expense_manager().load_demo_data()
        formatter.success(result["message"], {"count": len(result["data"]["expenses"])})
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Item, category, store or date to find")],
) -> None:
    """Search items and bills."""
    try:
        results = Analytics(data_store=get_data_store()).search(query)
        output_data = {
            "success": True,
            "data": {
                "search": {
                    "query": results.query,
                    "items": [e.model_dump(mode="json") for e in results.items],
                    "bills": [b.model_dump(mode="json") for b in results.bills],
                },
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# Bill subcommand group
bill_app = typer.Typer(help="Shopping visit (bill) commands")
app.add_typer(bill_app, name="bill")


@bill_app.command("show")
def bill_show(
    store: Annotated[str, typer.Argument(help="Store name")],
    on: Annotated[str, typer.Argument(help="Bill date YYYY-MM-DD")],
) -> None:
    """Show every item of one bill."""
    try:
        detail = Analytics(data_store=get_data_store()).bill_detail(store, parse_date(on))
        if not detail["items"]:
            formatter.error(f"No bill found for '{store}' on {on}", error_code="BILL_NOT_FOUND")
            raise typer.Exit(code=1)
        formatter.output({"success": True, "data": {"bill_detail": detail}})
    except (typer.Exit, typer.BadParameter):
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@bill_app.command("update")
def bill_update(
    store: Annotated[str, typer.Argument(help="Store name")],
    on: Annotated[str, typer.Argument(help="Bill date YYYY-MM-DD")],
    payer: Annotated[str | None, typer.Option("--by", help="New payer for every item")] = None,
    owner: Annotated[str | None, typer.Option("--owner", "-o", help="New owner")] = None,
    personal: Annotated[
        bool, typer.Option("--personal", help="Make the bill personal to the default payer")
    ] = False,
    shared: Annotated[bool, typer.Option("--shared", help="Split every item")] = False,
) -> None:
    """Apply the same payer/owner to every item of one bill."""
    try:
        if personal and shared:
            formatter.error("Use either --personal or --shared, not both")
            raise typer.Exit(code=1)

        if personal:
            me = get_config().defaults.payer
            payer, owner = me, me
        elif shared:
            owner = SHARED_OWNER

        if payer is None and owner is None:
            formatter.error("Nothing to update: pass --by, --owner, --personal or --shared")
            raise typer.Exit(code=1)

        result = get_expense_manager().update_bill(
            store, parse_date(on), payer=payer, owner=owner
        )
        formatter.output(result, result["message"])
    except BillNotFoundError as e:
        formatter.error(str(e), error_code="BILL_NOT_FOUND")
        raise typer.Exit(code=1)
    except (typer.Exit, typer.BadParameter):
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# Receipt subcommand group
receipt_app = typer.Typer(help="Receipt processing commands")
app.add_typer(receipt_app, name="receipt")


def _receipt_settings(payer: str | None, personal: bool) -> tuple[str, BillType]:
    people = get_participants()
    effective_payer = payer or get_config().defaults.payer
    if personal or len(people) <= 1:
        return effective_payer, BillType.PERSONAL
    return effective_payer, BillType.SHARED


@receipt_app.command("scan")
def receipt_scan(
    image: Annotated[Path, typer.Argument(help="Receipt photo", exists=True, dir_okay=False)],
    payer: Annotated[str | None, typer.Option("--by", help="Who paid")] = None,
    personal: Annotated[bool, typer.Option("--personal", help="Personal bill")] = False,
) -> None:
    """Extract items from a receipt photo and save them."""
    try:
        cfg = get_config()
        mime_type = mimetypes.guess_type(image.name)[0] or "image/jpeg"
        service = GeminiService(model=cfg.ai.model, api_key_env=cfg.ai.api_key_env)
        parsed = service.parse_receipt(image.read_bytes(), mime_type)

        effective_payer, bill_type = _receipt_settings(payer, personal)
        processor = ReceiptProcessor(get_expense_manager())
        result = processor.process_parsed_receipt(
            parsed, get_participants(), payer=effective_payer, bill_type=bill_type
        )
        formatter.output(result, result["message"])
    except (ReceiptParseError, ReceiptProcessingError) as e:
        formatter.error(
            f"{e}. Please try again or enter items manually.", error_code="RECEIPT_PARSE_FAILED"
        )
        raise typer.Exit(code=1)
    except AIServiceError as e:
        formatter.error(str(e), error_code="AI_UNAVAILABLE")
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@receipt_app.command("import")
def receipt_import(
    data: Annotated[str | None, typer.Option("--data", help="Parsed receipt JSON")] = None,
    file: Annotated[Path | None, typer.Option("--file", "-f", help="Path to JSON file")] = None,
    payer: Annotated[str | None, typer.Option("--by", help="Who paid")] = None,
    personal: Annotated[bool, typer.Option("--personal", help="Personal bill")] = False,
) -> None:
    """Save items from already-parsed receipt JSON."""
    try:
        if not data and not file:
            formatter.error("Must provide either --data or --file")
            raise typer.Exit(code=1)

        if data:
            receipt_dict = json.loads(data)
        else:
            with open(file) as f:  # type: ignore[arg-type]
                receipt_dict = json.load(f)

        effective_payer, bill_type = _receipt_settings(payer, personal)
        processor = ReceiptProcessor(get_expense_manager())
        result = processor.process_receipt_dict(
            receipt_dict, get_participants(), payer=effective_payer, bill_type=bill_type
        )
        formatter.output(result, result["message"])
    except json.JSONDecodeError as e:
        formatter.error(f"Invalid JSON: {e}")
        raise typer.Exit(code=1)
    except ReceiptProcessingError as e:
        formatter.error(str(e), error_code="EMPTY_RECEIPT")
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# Stats subcommand group
stats_app = typer.Typer(help="Spending analytics")
app.add_typer(stats_app, name="stats")


@stats_app.callback(invoke_without_command=True)
def stats_default(ctx: typer.Context) -> None:
    """View the spending dashboard."""
    if ctx.invoked_subcommand is not None:
        return
    try:
        summary = Analytics(data_store=get_data_store()).spending_summary()
        formatter.output({"success": True, "data": {"spending": summary.model_dump()}})
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stats_app.command("compare")
def stats_compare(
    term: Annotated[str, typer.Argument(help="Item name to compare prices")],
) -> None:
    """Compare what an item cost across purchases, cheapest first."""
    try:
        matches = Analytics(data_store=get_data_store()).price_comparison(term)
        output_data = {
            "success": True,
            "data": {
                "comparison": {
                    "term": term,
                    "matches": [e.model_dump(mode="json") for e in matches],
                },
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def split(
    me: Annotated[
        str | None, typer.Option("--me", help="Participant to describe the balance for")
    ] = None,
) -> None:
    """Show who paid what and who owes whom."""
    try:
        cfg = get_config()
        report = Analytics(data_store=get_data_store()).settlement(get_participants())
        output_data = {
            "success": True,
            "data": {
                "settlement": {
                    "participants": get_participants(),
                    "balances": report.as_rows(),
                    "message": settlement_message(
                        report,
                        me or cfg.defaults.payer,
                        currency=cfg.household.currency_symbol,
                    ),
                },
            },
        }
        formatter.output(output_data)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def restock(
    all_items: Annotated[
        bool, typer.Option("--all", help="Show every item, not just the shopping list")
    ] = False,
    as_of: Annotated[
        str | None, typer.Option("--as-of", help="Reference date YYYY-MM-DD (default today)")
    ] = None,
) -> None:
    """Predict which items are running out."""
    try:
        analytics = Analytics(data_store=get_data_store())
        now = parse_date(as_of, "--as-of")
        items = analytics.replenishment(now) if all_items else analytics.shopping_list(now)
        output_data = {
            "success": True,
            "data": {
                "restock": {
                    "title": "Shelf Life" if all_items else "Shopping List",
                    "as_of": now.isoformat(),
                    "items": [item.model_dump(mode="json") for item in items],
                },
            },
        }
        formatter.output(output_data)
    except typer.BadParameter:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def plan(
    store: Annotated[
        str | None, typer.Option("--store", "-s", help="Store to plan for (default: first)")
    ] = None,
    as_of: Annotated[
        str | None, typer.Option("--as-of", help="Reference date YYYY-MM-DD (default today)")
    ] = None,
) -> None:
    """Plan what to buy at a store and what is cheaper elsewhere."""
    try:
        analytics = Analytics(data_store=get_data_store())
        trip = analytics.store_plan(store, parse_date(as_of, "--as-of"))
        output_data = {
            "success": True,
            "data": {"plan": trip.model_dump(mode="json"), "stores": analytics.stores()},
        }
        formatter.output(output_data, f"Trip plan for {trip.store}" if trip.store else "")
    except typer.BadParameter:
        raise
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def insights() -> None:
    """Ask the AI service for spending insights."""
    try:
        cfg = get_config()
        expenses = get_data_store().load_expenses()
        service = GeminiService(model=cfg.ai.model, api_key_env=cfg.ai.api_key_env)
        result = service.analyze_expenses(expenses)
        formatter.output({"success": True, "data": {"insights": result.model_dump(mode="json")}})
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
