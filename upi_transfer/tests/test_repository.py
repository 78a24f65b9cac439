from decimal import Decimal

import pytest
from sqlmodel import Session

from ..core.config import Settings
from ..core.db import create_engine_for_url, init_db
from ..models import Account, AccountStatus, TransactionRecord
from ..services import InMemoryAccountRepository, SqlAccountRepository, TransferService


@pytest.fixture
def memory_repo() -> InMemoryAccountRepository:
    return InMemoryAccountRepository().add_accounts(
        Account(id="ACC001", holder_name="Rajesh Kumar", balance=10000),
        Account(id="ACC002", holder_name="Priya Sharma", balance="5000.50"),
    )


@pytest.fixture
def sql_session(tmp_path):
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'accounts.db'}")
    init_db(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def sql_repo(sql_session: Session) -> SqlAccountRepository:
    repo = SqlAccountRepository(sql_session)
    repo.add_account(Account(id="ACC001", holder_name="Rajesh Kumar", balance=10000))
    repo.add_account(Account(id="ACC002", holder_name="Priya Sharma", balance="5000.50"))
    repo.add_alias("Rajesh@UPI", "ACC001")
    return repo


@pytest.fixture(params=["memory", "sql"])
def any_repo(request, tmp_path):
    if request.param == "memory":
        yield InMemoryAccountRepository()
        return
    engine = create_engine_for_url(f"sqlite:///{tmp_path / 'any.db'}")
    init_db(engine)
    with Session(engine) as session:
        yield SqlAccountRepository(session)
    engine.dispose()


def _record(reference: str, sender: str, receiver: str) -> TransactionRecord:
    return TransactionRecord(
        reference=reference,
        sender_id=sender,
        receiver_id=receiver,
        amount=Decimal("10"),
        sender_balance_before=Decimal("100"),
        sender_balance_after=Decimal("90"),
        receiver_balance_before=Decimal("0"),
        receiver_balance_after=Decimal("10"),
    )


def test_memory_load_returns_copy(memory_repo: InMemoryAccountRepository) -> None:
    account = memory_repo.load_account_by_id("ACC001")
    account.balance = Decimal("1")

    assert memory_repo.load_account_by_id("ACC001").balance == 10000


def test_memory_add_account_stores_copy() -> None:
    account = Account(id="X", holder_name="X", balance=50)
    repo = InMemoryAccountRepository().add_account(account)
    account.balance = Decimal("0")

    assert repo.load_account_by_id("X").balance == 50


def test_memory_missing_account_is_none(memory_repo: InMemoryAccountRepository) -> None:
    assert memory_repo.load_account_by_id("NOPE") is None
    assert not memory_repo.exists_by_id("NOPE")
    assert memory_repo.exists_by_id("ACC001")


def test_memory_save_overwrites(memory_repo: InMemoryAccountRepository) -> None:
    account = memory_repo.load_account_by_id("ACC001")
    account.debit(500)
    memory_repo.save_account(account)
    memory_repo.save_account(account)

    assert memory_repo.load_account_by_id("ACC001").balance == 9500
    assert memory_repo.account_count == 2


def test_memory_alias_lookup_ignores_case(memory_repo: InMemoryAccountRepository) -> None:
    memory_repo.add_alias("Priya@UPI", "ACC002")

    assert memory_repo.find_by_alias("priya@upi") == "ACC002"
    assert memory_repo.find_by_alias("PRIYA@upi") == "ACC002"
    assert memory_repo.find_by_alias("unknown@upi") is None
    assert memory_repo.alias_count == 1


def test_memory_total_balance(memory_repo: InMemoryAccountRepository) -> None:
    assert memory_repo.get_total_balance() == Decimal("15000.50")
    assert InMemoryAccountRepository().get_total_balance() == 0


def test_memory_clear(memory_repo: InMemoryAccountRepository) -> None:
    memory_repo.add_alias("a@upi", "ACC001")
    memory_repo.clear()

    assert memory_repo.is_empty()
    assert memory_repo.alias_count == 0


def test_memory_transaction_rolls_back_saves_and_records(memory_repo: InMemoryAccountRepository) -> None:
    with pytest.raises(RuntimeError):
        with memory_repo.transaction():
            account = memory_repo.load_account_by_id("ACC001")
            account.debit(1000)
            memory_repo.save_account(account)
            memory_repo.save_account(Account(id="NEW", holder_name="New", balance=1))
            memory_repo.add_transaction(_record("TXN1", "ACC001", "ACC002"))
            raise RuntimeError("boom")

    assert memory_repo.load_account_by_id("ACC001").balance == 10000
    assert not memory_repo.exists_by_id("NEW")
    assert memory_repo.list_transactions("ACC001") == []


def test_memory_transaction_keeps_work_on_success(memory_repo: InMemoryAccountRepository) -> None:
    with memory_repo.transaction():
        account = memory_repo.load_account_by_id("ACC002")
        account.credit("0.50")
        memory_repo.save_account(account)

    assert memory_repo.load_account_by_id("ACC002").balance == Decimal("5001.00")


def test_memory_list_transactions_newest_first(memory_repo: InMemoryAccountRepository) -> None:
    memory_repo.add_transaction(_record("TXN1", "ACC001", "ACC002"))
    memory_repo.add_transaction(_record("TXN2", "ACC002", "ACC003"))
    memory_repo.add_transaction(_record("TXN3", "ACC003", "ACC001"))

    assert [r.reference for r in memory_repo.list_transactions("ACC001")] == ["TXN3", "TXN1"]
    assert [r.reference for r in memory_repo.list_transactions("ACC002", limit=1)] == ["TXN2"]


def test_sql_round_trip(sql_repo: SqlAccountRepository) -> None:
    account = sql_repo.load_account_by_id("ACC002")

    assert account.holder_name == "Priya Sharma"
    assert account.balance == Decimal("5000.50")
    assert sql_repo.load_account_by_id("NOPE") is None
    assert sql_repo.exists_by_id("ACC001")
    assert not sql_repo.exists_by_id("NOPE")


def test_sql_alias_lookup_ignores_case(sql_repo: SqlAccountRepository) -> None:
    assert sql_repo.find_by_alias("rajesh@upi") == "ACC001"
    assert sql_repo.find_by_alias("RAJESH@UPI") == "ACC001"
    assert sql_repo.find_by_alias("nobody@upi") is None


def test_sql_total_balance(sql_repo: SqlAccountRepository) -> None:
    assert sql_repo.get_total_balance() == Decimal("15000.50")


def test_sql_transfer_is_persisted(sql_repo: SqlAccountRepository, sql_session: Session) -> None:
    service = TransferService(sql_repo, Settings(_env_file=None))

    result = service.transfer("ACC001", "ACC002", "2500.25")

    sql_session.expire_all()
    assert sql_repo.load_account_by_id("ACC001").balance == Decimal("7499.75")
    assert sql_repo.load_account_by_id("ACC002").balance == Decimal("7500.75")
    assert sql_repo.get_total_balance() == Decimal("15000.50")

    statement = service.get_statement("ACC002")
    assert [record.reference for record in statement] == [result.reference]
    assert statement[0].amount == Decimal("2500.25")


def test_sql_transaction_rolls_back(sql_repo: SqlAccountRepository) -> None:
    with pytest.raises(RuntimeError):
        with sql_repo.transaction():
            account = sql_repo.load_account_by_id("ACC001")
            account.debit(1000)
            sql_repo.save_account(account)
            raise RuntimeError("boom")

    assert sql_repo.load_account_by_id("ACC001").balance == 10000


def test_sql_status_round_trip(sql_repo: SqlAccountRepository) -> None:
    account = sql_repo.load_account_by_id("ACC001")
    assert account.status is AccountStatus.ACTIVE

    account.status = AccountStatus.SUSPENDED
    sql_repo.add_account(account)

    assert sql_repo.load_account_by_id("ACC001").status is AccountStatus.SUSPENDED


def test_sql_sub_paise_amount_moves_same_paise_on_both_sides(sql_session: Session) -> None:
    repo = SqlAccountRepository(sql_session)
    repo.add_account(Account(id="A", holder_name="A", balance="10.00"))
    repo.add_account(Account(id="B", holder_name="B", balance="0.01"))
    service = TransferService(repo, Settings(_env_file=None))

    result = service.transfer("A", "B", "1.015")

    sql_session.expire_all()
    assert result.amount == Decimal("1.02")
    assert repo.load_account_by_id("A").balance == result.sender_balance_after == Decimal("8.98")
    assert repo.load_account_by_id("B").balance == result.receiver_balance_after == Decimal("1.03")
    assert repo.get_total_balance() == Decimal("10.01")
    assert service.get_statement("A")[0].amount == result.amount


@pytest.mark.parametrize("amount", ["1.015", "2.005", "333.333", 0.1 + 1, Decimal("99.999")])
def test_fractional_transfers_conserve_total(any_repo, amount) -> None:
    any_repo.add_account(Account(id="A", holder_name="A", balance="1000.00"))
    any_repo.add_account(Account(id="B", holder_name="B", balance="0.01"))
    service = TransferService(any_repo, Settings(_env_file=None))

    for _ in range(3):
        result = service.transfer("A", "B", amount)
        assert result.sender_balance_before + result.receiver_balance_before == (
            result.sender_balance_after + result.receiver_balance_after
        )

    assert any_repo.get_total_balance() == Decimal("1000.01")
    assert any_repo.load_account_by_id("A").balance == result.sender_balance_after
    assert any_repo.load_account_by_id("B").balance == result.receiver_balance_after
