from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from leal.entities import (
    Branch,
    Business,
    Campaign,
    ConversionFactor,
    Earnings,
    Redemption,
    Reward,
    Transaction,
    User,
)
from leal.errors import (
    BadRequestError,
    DuplicatedKeyError,
    InternalServerError,
    NotFoundError,
    SavingError,
)
from leal.repository import SqlRepository
from leal.schema import init_database

TAX_ID = 900123
DOCUMENT = 123456789


@pytest.fixture
def repo():
    return SqlRepository(init_database("sqlite://"))


def _business(repo, tax_id=TAX_ID, name="Tienda", email="tienda@example.com"):
    business = Business(tax_id=tax_id, name=name, phone=1, email=email)
    repo.insert_business(business)
    return business


def _branch(repo, name="Centro", tax_id=TAX_ID):
    branch = Branch(business_tax_id=tax_id, name=name)
    repo.insert_branch(branch)
    return branch


def _user(repo, document=DOCUMENT, email="juan.perez@example.com"):
    user = User(name="Juan Pérez", document_number=document, email=email)
    repo.insert_user(user)
    return user


def _campaign(branch_id, start, end, tax_id=TAX_ID):
    return Campaign(
        business_tax_id=tax_id,
        branch_id=branch_id,
        start_date=start,
        end_date=end,
        points_multiplier=1.5,
        cashback_multiplier=2.0,
        min_purchase_amount=100.0,
    )


def test_insert_user_stores_row(repo):
    user = _user(repo)
    with Session(repo.engine) as session:
        stored = session.scalars(select(User)).all()
    assert [row.email for row in stored] == ["juan.perez@example.com"]
    assert user.id == stored[0].id


@pytest.mark.parametrize("name,email", [("", "a@example.com"), ("Ana", "")])
def test_insert_user_requires_name_and_email(repo, name, email):
    with pytest.raises(BadRequestError):
        repo.insert_user(User(name=name, document_number=1, email=email))


def test_insert_user_duplicate_email(repo):
    _user(repo)
    with pytest.raises(DuplicatedKeyError) as info:
        _user(repo, document=DOCUMENT + 1)
    assert "email juan.perez@example.com already exists" in str(info.value)


def test_insert_business_requires_name(repo):
    with pytest.raises(BadRequestError):
        repo.insert_business(Business(tax_id=1, name="", phone=1, email="x@example.com"))


def test_insert_business_duplicate(repo):
    _business(repo)
    with pytest.raises(DuplicatedKeyError) as info:
        _business(repo, tax_id=TAX_ID + 1, email="otra@example.com")
    assert "business with the same name, tax ID, or email already exists" in str(info.value)


def test_insert_branch_fills_id_and_lists(repo):
    _business(repo)
    first = _branch(repo, "Centro")
    second = _branch(repo, "Norte")
    assert first.id is not None and second.id is not None
    branches = repo.get_branches(TAX_ID)
    assert [branch.name for branch in branches] == ["Centro", "Norte"]
    assert [branch.id for branch in branches] == [first.id, second.id]


def test_insert_branch_requires_name(repo):
    with pytest.raises(BadRequestError):
        repo.insert_branch(Branch(business_tax_id=TAX_ID, name=""))


def test_insert_branch_unknown_business(repo):
    with pytest.raises(SavingError) as info:
        _branch(repo, tax_id=999)
    assert "el business_tax_id 999 no existe" in str(info.value)


def test_insert_branch_duplicate_name(repo):
    _business(repo)
    _branch(repo, "Centro")
    with pytest.raises(DuplicatedKeyError) as info:
        _branch(repo, "Centro")
    assert "branch Centro already exists" in str(info.value)


def test_get_branches_not_found(repo):
    with pytest.raises(NotFoundError) as info:
        repo.get_branches(5)
    assert "no se encontraron sucursales para el tax_id: 5" in str(info.value)


def test_insert_campaign_rejects_overlap(repo):
    _business(repo)
    branch = _branch(repo)
    repo.insert_campaign(_campaign(branch.id, datetime(2025, 3, 1), datetime(2025, 3, 31)))
    with pytest.raises(DuplicatedKeyError) as info:
        repo.insert_campaign(_campaign(branch.id, datetime(2025, 3, 15), datetime(2025, 4, 15)))
    assert f"para la sucursal {branch.id} del negocio {TAX_ID}" in str(info.value)


def test_insert_campaign_accepts_disjoint_ranges(repo):
    _business(repo)
    branch = _branch(repo)
    repo.insert_campaign(_campaign(branch.id, datetime(2025, 3, 1), datetime(2025, 3, 31)))
    repo.insert_campaign(_campaign(branch.id, datetime(2025, 4, 1), datetime(2025, 4, 30)))
    campaigns = repo.get_campaigns(TAX_ID)
    assert [c.start_date for c in campaigns] == [datetime(2025, 3, 1), datetime(2025, 4, 1)]


def test_insert_campaign_unknown_business(repo):
    with pytest.raises(SavingError) as info:
        repo.insert_campaign(_campaign(1, datetime(2025, 3, 1), datetime(2025, 3, 31), tax_id=999))
    assert "el business_tax_id 999 no existe" in str(info.value)


def test_get_campaigns_not_found(repo):
    with pytest.raises(NotFoundError) as info:
        repo.get_campaigns(7)
    assert "no se encontraron campañas para el tax_id: 7" in str(info.value)


def test_reward_round_trip(repo):
    _business(repo)
    reward = Reward(name="Recompensa 1", description="Descripción", points_required=100, business_tax_id=TAX_ID)
    repo.insert_reward(reward)
    stored = repo.get_reward(reward.id)
    assert (stored.name, stored.points_required) == ("Recompensa 1", 100)


def test_get_reward_missing_is_empty(repo):
    reward = repo.get_reward(42)
    assert (reward.name, reward.points_required) == ("", 0)


def test_insert_reward_requires_name(repo):
    with pytest.raises(BadRequestError):
        repo.insert_reward(Reward(name="", points_required=1, business_tax_id=TAX_ID))


def test_insert_reward_unknown_business(repo):
    with pytest.raises(SavingError):
        repo.insert_reward(Reward(name="Premio", points_required=10, business_tax_id=999))


def test_insert_reward_non_positive_points(repo):
    _business(repo)
    with pytest.raises(InternalServerError):
        repo.insert_reward(Reward(name="Premio", points_required=0, business_tax_id=TAX_ID))


def test_insert_conversion_factor_unknown_business_is_internal(repo):
    factor = ConversionFactor(business_tax_id=999, min_amount=0.0, points_per_currency=1.0, cashback_per_currency=0.1)
    with pytest.raises(InternalServerError) as info:
        repo.insert_conversion_factor(factor)
    assert "error inserting the conversion factor" in str(info.value)


def test_find_conversion_factor_prefers_branch(repo):
    _business(repo)
    centro = _branch(repo, "Centro")
    norte = _branch(repo, "Norte")
    general = ConversionFactor(business_tax_id=TAX_ID, branch_id=None, min_amount=0.0,
                               points_per_currency=1.0, cashback_per_currency=0.01)
    specific = ConversionFactor(business_tax_id=TAX_ID, branch_id=centro.id, min_amount=0.0,
                                points_per_currency=10.0, cashback_per_currency=0.05)
    repo.insert_conversion_factor(general)
    repo.insert_conversion_factor(specific)
    assert repo.find_conversion_factor(TAX_ID, centro.id).id == specific.id
    assert repo.find_conversion_factor(TAX_ID, norte.id).id == general.id


def test_find_conversion_factor_missing(repo):
    assert repo.find_conversion_factor(TAX_ID, 1) is None


def test_find_branch(repo):
    _business(repo)
    branch = _branch(repo)
    found = repo.find_branch(branch.id)
    assert (found.name, found.business_tax_id) == ("Centro", TAX_ID)
    assert repo.find_branch(branch.id + 100) is None


def test_find_active_campaign(repo):
    _business(repo)
    branch = _branch(repo)
    campaign = _campaign(branch.id, datetime(2025, 3, 1), datetime(2025, 3, 31))
    repo.insert_campaign(campaign)
    assert repo.find_active_campaign(branch.id, datetime(2025, 3, 10)).id == campaign.id
    assert repo.find_active_campaign(branch.id, datetime(2025, 5, 1)) is None


def test_save_transaction_links_earnings(repo):
    _business(repo)
    branch = _branch(repo)
    _user(repo)
    transaction = Transaction(user_document_number=DOCUMENT, branch_id=branch.id, amount=100.0)
    earnings = Earnings(points_earned=10, cashback_earned=0.5)
    repo.save_transaction(transaction, earnings)
    assert earnings.transaction_id == transaction.id
    with Session(repo.engine) as session:
        stored = session.scalars(select(Earnings)).one()
    assert stored.transaction_id == transaction.id
    assert stored.points_earned == 10


def test_save_transaction_unknown_branch_saves_nothing(repo):
    _business(repo)
    _user(repo)
    transaction = Transaction(user_document_number=DOCUMENT, branch_id=77, amount=100.0)
    with pytest.raises(InternalServerError):
        repo.save_transaction(transaction, Earnings(points_earned=1, cashback_earned=0.0))
    with Session(repo.engine) as session:
        assert session.scalars(select(Transaction)).all() == []


def test_update_user_balance_accumulates(repo):
    repo.update_user_balance(DOCUMENT, 10, 1.25)
    repo.update_user_balance(DOCUMENT, 5, 0.75)
    balance = repo.get_user_balance(DOCUMENT)
    assert balance.points == 15
    assert balance.cashback == pytest.approx(2.0)


def test_update_user_redeem_points(repo):
    repo.update_user_balance(DOCUMENT, 100, 0.0)
    repo.update_user_redeem_points(DOCUMENT, 50)
    assert repo.get_user_balance(DOCUMENT).points == 50


def test_get_user_balance_missing_is_zero(repo):
    balance = repo.get_user_balance(DOCUMENT)
    assert (balance.points, balance.cashback) == (0, 0.0)


def test_insert_redemption(repo):
    _business(repo)
    _user(repo)
    reward = Reward(name="Premio", points_required=50, business_tax_id=TAX_ID)
    repo.insert_reward(reward)
    redemption = Redemption(user_document_number=DOCUMENT, business_tax_id=TAX_ID,
                            reward_id=reward.id, points_spent=50)
    repo.insert_redemption(redemption)
    with Session(repo.engine) as session:
        stored = session.scalars(select(Redemption)).one()
    assert (stored.reward_id, stored.points_spent) == (reward.id, 50)


def test_insert_redemption_unknown_business(repo):
    _business(repo)
    _user(repo)
    reward = Reward(name="Premio", points_required=50, business_tax_id=TAX_ID)
    repo.insert_reward(reward)
    redemption = Redemption(user_document_number=DOCUMENT, business_tax_id=999,
                            reward_id=reward.id, points_spent=50)
    with pytest.raises(SavingError) as info:
        repo.insert_redemption(redemption)
    assert "el business_tax_id 999 no existe" in str(info.value)