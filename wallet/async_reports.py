import asyncio
from collections import defaultdict
from typing import Dict, List, Sequence

from wallet.domain import Account, Payment, PaymentStatus, Progress


def _split_parts(payments: Sequence[Payment], parts: int) -> List[Sequence[Payment]]:
    """Cut payments into at most ``parts`` contiguous, non-empty chunks."""
    parts = max(1, parts)
    size = -(-len(payments) // parts)  # ceil division
    if size == 0:
        return []
    return [payments[i:i + size] for i in range(0, len(payments), size)]


async def _part_total(index: int, chunk: Sequence[Payment]) -> Progress:
    total = sum(p.amount for p in chunk)
    await asyncio.sleep(0)  # cooperate
    return Progress(part=index, result=total)


async def sum_payments_with_progress(payments: Sequence[Payment], parts: int) -> List[Progress]:
    """Total the payments in ``parts`` chunks concurrently.

    Returns one Progress per chunk in chunk order; no payments, no progress.
    """
    chunks = _split_parts(list(payments), parts)
    return list(await asyncio.gather(*(_part_total(i, c) for i, c in enumerate(chunks))))


async def sum_payments(payments: Sequence[Payment], parts: int) -> int:
    progress = await sum_payments_with_progress(payments, parts)
    return sum(p.result for p in progress)


async def spent_by_account(accounts: Sequence[Account], payments: Sequence[Payment]) -> Dict[int, int]:
    """Total non-rejected spend per account, one task per account."""
    by_account: Dict[int, List[Payment]] = defaultdict(list)
    for p in payments:
        by_account[p.account_id].append(p)

    async def spent(a: Account) -> tuple[int, int]:
        total = sum(p.amount for p in by_account.get(a.id, []) if p.status != PaymentStatus.FAIL)
        await asyncio.sleep(0)
        return a.id, total

    results = await asyncio.gather(*(spent(a) for a in accounts))
    return {k: v for k, v in results}
