"""Interfaces between the loyalty services and their storage."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from leal import entities, models
from leal.requests import (
    CreateBranch,
    CreateBusiness,
    CreateCampaign,
    CreateReward,
    CreateUser,
    RedeemPoints,
)


class Repository(Protocol):
    """Storage used by the services; failures are raised as LealError subclasses."""

    def insert_conversion_factor(self, factor: entities.ConversionFactor) -> None:
        """Store a conversion factor."""

    def insert_redemption(self, redemption: entities.Redemption) -> None:
        """Store a redemption of points."""

    def insert_campaign(self, campaign: entities.Campaign) -> None:
        """Store a campaign unless another overlaps it at the same branch."""

    def insert_business(self, business: entities.Business) -> None:
        """Store a business unless its name, tax id or e-mail is taken."""

    def insert_branch(self, branch: entities.Branch) -> None:
        """Store a branch and fill in its generated id."""

    def insert_reward(self, reward: entities.Reward) -> None:
        """Store a reward and fill in its generated id."""

    def insert_user(self, user: entities.User) -> None:
        """Store a user."""

    def get_branches(self, tax_id: int) -> list[entities.Branch]:
        """Return the branches of a business; raise NotFoundError when there are none."""

    def get_campaigns(self, tax_id: int) -> list[entities.Campaign]:
        """Return the campaigns of a business; raise NotFoundError when there are none."""

    def get_user_balance(self, user_id: int) -> entities.UserBalance:
        """Return the balance of a user, empty when the user has none."""

    def get_reward(self, reward_id: int) -> entities.Reward:
        """Return a reward, empty when it does not exist."""

    def find_branch(self, branch_id: int) -> Optional[entities.Branch]:
        """Return a branch by id."""

    def find_conversion_factor(
        self, business_tax_id: int, branch_id: int
    ) -> Optional[entities.ConversionFactor]:
        """Return the factor of a branch, falling back to the business-wide one."""

    def find_active_campaign(self, branch_id: int, now: datetime) -> Optional[entities.Campaign]:
        """Return a campaign of the branch that runs at the given moment."""

    def save_transaction(self, transaction: entities.Transaction, earnings: entities.Earnings) -> None:
        """Store a transaction and its earnings atomically."""

    def update_user_redeem_points(self, user_id: int, points: int) -> None:
        """Take points off a user's balance."""

    def update_user_balance(self, user_id: int, points: int, cashback: float) -> None:
        """Add points and cashback to a user's balance, creating it if needed."""


class Service(Protocol):
    """Operations offered to the HTTP layer."""

    def create_user(self, request: CreateUser) -> None:
        """Register a user."""

    def create_reward(self, request: CreateReward) -> None:
        """Register a reward."""

    def create_campaign(self, request: CreateCampaign) -> None:
        """Register a campaign."""

    def create_business(self, request: CreateBusiness) -> None:
        """Register a business with its conversion factor."""

    def create_branch(self, request: CreateBranch) -> None:
        """Register a branch with its conversion factor."""

    def obtain_branches(self, tax_id: int) -> list[models.Branch]:
        """List the branches of a business."""

    def obtain_campaign(self, tax_id: int) -> list[models.Campaign]:
        """List the campaigns of a business."""

    def redeem_points(self, request: RedeemPoints) -> int:
        """Redeem a reward and return the points spent."""