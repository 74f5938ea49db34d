"""Basic usage example for transaction search."""

import asyncio
from datetime import datetime, timedelta

from transaction_search import TransactionSearchService, TransactionType
from transaction_search.config import EmbeddingSettings, Settings


def sample_records() -> list:
    """A few days of account activity."""
    today = datetime.now()
    rows = [
        ("Amazon Purchase", "withdrawal", "-50.00", 2, False, ["Shopping", "Online"]),
        ("Salary Deposit", "deposit", "3000.00", 2, False, ["Income"]),
        ("Starbucks Coffee", "withdrawal", "-4.50", 16, False, ["Food & Drink", "Coffee"]),
        ("Gym Membership Fee", "withdrawal", "-50.00", 24, False, ["Health", "Subscription"]),
        ("Cheque to landlord", "transfer", "-1200.00", 10, True, ["Housing", "Bills"]),
        ("Pret A Manger Latte", "withdrawal", "-3.20", 5, False, ["Food & Drink", "Coffee"]),
    ]
    return [
        {
            "date": (today - timedelta(days=days)).isoformat(),
            "title": title,
            "type": kind,
            "amount": amount,
            "is_cheque": cheque,
            "category": category,
        }
        for title, kind, amount, days, cheque, category in rows
    ]


def show(label: str, result) -> None:
    print(f"\n   {label} [{result.mode.value}]")
    if not result:
        print("     No results found")
    for match in result:
        t = match.transaction
        score = "" if match.score is None else f" - Score: {match.score:.3f}"
        print(f"     {match.rank}. {t.title} ({t.amount}){score}")


async def basic_search_demo():
    """Demonstrate basic search functionality."""
    print("Transaction Search - Basic Usage Demo")
    print("=" * 50)

    # "auto" uses a sentence model when sentence-transformers is installed
    settings = Settings(embedding=EmbeddingSettings(strategy="auto"))

    print("\n1. Initializing search service...")
    async with TransactionSearchService.create(
        settings=settings,
        transactions=sample_records(),
        log_level="WARNING"
    ) as service:
        print(f"   Embeddings: {service.provider.strategy} "
              f"(available={service.provider.is_available})")

        print("\n2. Semantic searches...")
        for query in ("coffee", "income", "rent", "online shopping"):
            show(f"Query: '{query}'", await service.search_text(query))

        print("\n3. Plain-text search...")
        show("Amount contains '50.00'", await service.search_text("50.00", semantic=False))

        print("\n4. Filters combined with search...")
        show(
            "Withdrawals under -10 matching 'fee'",
            await service.search_text(
                "fee",
                selected_type=TransactionType.WITHDRAWAL,
                max_amount="-10"
            )
        )
        show("Cheques only", await service.search({"cheques_only": True}))

        print("\n5. Similar transactions...")
        show("Similar to 'latte'", await service.find_similar("latte", threshold=0.3))

        service.reset_filters()

        print("\n6. Health check...")
        health = await service.health_check()
        print(f"   System status: {health['status']}")

        stats = await service.get_stats()
        print(f"   Total searches performed: {stats['coordinator']['total_searches']}")
        print(f"   Average search time: {stats['coordinator']['avg_search_time']:.3f}s")

    print("\nDemo completed successfully!")


if __name__ == "__main__":
    asyncio.run(basic_search_demo())
