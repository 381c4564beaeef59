"""
Compound-interest projections for savings scenarios.

This module runs a month-by-month simulation of a savings balance with
recurring contributions, monthly or yearly interest accrual and, when the
advanced options are enabled, contribution growth, gains tax and
inflation-adjusted (real) balances.

Each month is processed in a fixed order: contribution, interest, tax on the
interest, then real-value reporting.
"""

import datetime
import logging
from typing import List, Literal, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from .calendar_math import DateLike, InflationAdjuster, add_months, parse_date, today

logger = logging.getLogger(__name__)

Frequency = Literal["monthly", "yearly"]


class InterestScenarioInput(BaseModel):
    """Inputs of a savings scenario. Rates are given in percent."""

    name: str = Field(default="", description="Scenario name")
    start_capital: float = Field(default=0.0, description="Initial balance")
    recurring_contribution: float = Field(
        default=0.0, description="Contribution per contribution period"
    )
    contribution_frequency: Frequency = Field(
        default="monthly", description="How often contributions are paid in"
    )
    annual_interest_rate: float = Field(
        default=0.0, description="Nominal annual interest rate (percent)"
    )
    duration_months: int = Field(default=12, description="Months to simulate")
    interest_frequency: Frequency = Field(
        default="monthly", description="How often interest is credited"
    )
    advanced_enabled: bool = Field(
        default=False, description="Apply inflation, tax and contribution growth"
    )
    annual_inflation_rate: float = Field(
        default=0.0, description="Annual inflation rate (percent)"
    )
    gains_tax_rate: float = Field(
        default=0.0, description="Tax on interest earned (percent)"
    )
    annual_contribution_increase: float = Field(
        default=0.0, description="Yearly contribution growth (percent)"
    )


class InterestPoint(BaseModel):
    """State of the scenario at the end of one simulated month."""

    month: int = Field(..., ge=1, description="Month number (1-based)")
    date: datetime.date = Field(..., description="Calendar date of the month end")
    contribution: float = Field(..., description="Contribution paid this month")
    interest_earned: float = Field(..., description="Net interest credited this month")
    balance: float = Field(..., description="Balance after this month")
    total_contribution: float = Field(..., description="Cumulative contributions")
    total_interest: float = Field(..., description="Cumulative net interest")
    real_balance: Optional[float] = Field(
        default=None, description="Balance in start-date money (advanced only)"
    )


class InterestResult(BaseModel):
    """Complete projection of a savings scenario."""

    scenario: InterestScenarioInput = Field(..., description="Scenario inputs")
    timeline: List[InterestPoint] = Field(
        default_factory=list, description="One point per simulated month"
    )

    @property
    def end_balance(self) -> float:
        """Balance after the last month (start capital for an empty series)."""
        if not self.timeline:
            return self.scenario.start_capital
        return self.timeline[-1].balance

    @property
    def total_contribution(self) -> float:
        """Total contributions over the scenario."""
        return self.timeline[-1].total_contribution if self.timeline else 0.0

    @property
    def total_interest(self) -> float:
        """Total net interest over the scenario."""
        return self.timeline[-1].total_interest if self.timeline else 0.0

    @property
    def real_end_balance(self) -> Optional[float]:
        """Inflation-adjusted end balance (advanced scenarios only)."""
        return self.timeline[-1].real_balance if self.timeline else None

    def get_balances(self) -> NDArray[np.float64]:
        """Get the balance series as a numpy array."""
        return np.array([point.balance for point in self.timeline], dtype=np.float64)

    def get_real_balances(self) -> Optional[NDArray[np.float64]]:
        """Get the real balance series, or None when not computed."""
        if not self.scenario.advanced_enabled:
            return None
        return np.array(
            [point.real_balance for point in self.timeline], dtype=np.float64
        )

    def get_interest_series(self) -> NDArray[np.float64]:
        """Get the monthly net interest series as a numpy array."""
        return np.array(
            [point.interest_earned for point in self.timeline], dtype=np.float64
        )


class InterestSimulator:
    """Month-by-month compound-growth simulator."""

    @staticmethod
    def is_contribution_month(month: int, frequency: Frequency) -> bool:
        """Monthly contributions every month, yearly ones every 12th month."""
        return frequency == "monthly" or month % 12 == 0

    @staticmethod
    def is_interest_month(month: int, frequency: Frequency) -> bool:
        """Monthly interest every month, yearly interest every 12th month."""
        return frequency == "monthly" or month % 12 == 0

    @staticmethod
    def calculate_contribution(scenario: InterestScenarioInput, month: int) -> float:
        """
        Calculate the contribution paid in a month.

        With advanced options, the base contribution grows once per
        simulated year by the annual contribution increase.
        """
        if not InterestSimulator.is_contribution_month(
            month, scenario.contribution_frequency
        ):
            return 0.0

        contribution = scenario.recurring_contribution
        if scenario.advanced_enabled:
            years_elapsed = (month - 1) // 12
            growth = 1 + scenario.annual_contribution_increase / 100
            contribution *= growth**years_elapsed
        return contribution

    @staticmethod
    def calculate_interest(
        scenario: InterestScenarioInput, balance: float, month: int
    ) -> float:
        """
        Calculate the net interest credited in a month.

        Args:
            scenario: Scenario inputs
            balance: Balance after this month's contribution
            month: Month number (1-based)

        Returns:
            Interest after gains tax (tax only applies with advanced options)
        """
        if not InterestSimulator.is_interest_month(month, scenario.interest_frequency):
            return 0.0

        if scenario.interest_frequency == "monthly":
            gross = balance * scenario.annual_interest_rate / 12 / 100
        else:
            gross = balance * scenario.annual_interest_rate / 100

        if scenario.advanced_enabled:
            return gross * (1 - scenario.gains_tax_rate / 100)
        return gross

    @staticmethod
    def simulate(
        scenario: InterestScenarioInput, start_date: Optional[DateLike] = None
    ) -> InterestResult:
        """
        Run the simulation from scratch.

        Args:
            scenario: Scenario inputs
            start_date: Date the scenario starts (defaults to today)

        Returns:
            Projection with one point per month; empty when the duration is
            not positive
        """
        start = parse_date(start_date) if start_date is not None else today()
        inflation = InflationAdjuster(annual_inflation_rate=scenario.annual_inflation_rate)

        balance = scenario.start_capital
        total_contribution = 0.0
        total_interest = 0.0
        timeline = []

        for month in range(1, scenario.duration_months + 1):
            contribution = InterestSimulator.calculate_contribution(scenario, month)
            balance += contribution
            total_contribution += contribution

            interest = InterestSimulator.calculate_interest(scenario, balance, month)
            balance += interest
            total_interest += interest

            real_balance = None
            if scenario.advanced_enabled:
                real_balance = inflation.to_real_value(balance, month)

            timeline.append(
                InterestPoint(
                    month=month,
                    date=add_months(start, month),
                    contribution=contribution,
                    interest_earned=interest,
                    balance=balance,
                    total_contribution=total_contribution,
                    total_interest=total_interest,
                    real_balance=real_balance,
                )
            )

        logger.debug(
            f"Simulated scenario '{scenario.name}' over {len(timeline)} months, "
            f"end balance {balance:.2f}"
        )
        return InterestResult(scenario=scenario, timeline=timeline)


def calculate_interest_scenario(
    scenario: InterestScenarioInput, start_date: Optional[DateLike] = None
) -> InterestResult:
    """Convenience wrapper around ``InterestSimulator.simulate``."""
    return InterestSimulator.simulate(scenario, start_date)
