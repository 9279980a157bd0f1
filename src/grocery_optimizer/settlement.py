"""Split-cost settlement between household participants."""

from collections.abc import Iterable, Sequence

from .models import Expense, ParticipantBalance, SettlementReport, SHARED_OWNER


def compute_settlement(
    expenses: Iterable[Expense],
    participants: Sequence[str],
) -> SettlementReport:
    """Compute paid, consumed and net position for every participant.

    Shared expenses are divided across the currently active participants.
    Payers and owners that are no longer active get their own entry on
    first encounter.

    Args:
        expenses: The full expense collection
        participants: Active participant names, in display order

    Returns:
        SettlementReport keyed by participant name
    """
    balances: dict[str, ParticipantBalance] = {
        name: ParticipantBalance() for name in participants
    }

    for expense in expenses:
        balances.setdefault(expense.payer, ParticipantBalance()).paid += expense.amount

        if expense.owner == SHARED_OWNER:
            # No active participants means nobody to split with
            if not participants:
                continue
            share = expense.amount / len(participants)
            for name in participants:
                balances[name].consumed += share
        else:
            balances.setdefault(expense.owner, ParticipantBalance()).consumed += expense.amount

    return SettlementReport(balances=balances)


def settlement_message(
    report: SettlementReport,
    participant: str = "Me",
    currency: str = "€",
) -> str:
    """Describe one participant's overall position."""
    balance = report.get(participant)
    if balance is None:
        return f"No data for '{participant}' yet."

    if balance.is_settled:
        return "You are all settled up!"
    if balance.net > 0:
        return f"You are owed {currency}{balance.net:.2f} in total"
    return f"You owe {currency}{abs(balance.net):.2f} in total"
