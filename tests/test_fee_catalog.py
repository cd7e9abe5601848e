"""Tests for fee rule storage and selection."""

from datetime import datetime
from decimal import Decimal

import pytest

from walletledger.domain.entities import FeeBracket, FeeRule, FixedFee, PercentageFee, TieredFee
from walletledger.domain.errors import NotFoundError, ValidationError
from walletledger.domain.fee_catalog import DEFAULT_FEE_RULE, applicability_score

D = Decimal


def fixed_rule(name, amount, **kwargs):
    kwargs.setdefault("effective_start", datetime(2020, 1, 1))
    kwargs.setdefault("transaction_type", "transfer")
    return FeeRule(
        name=name,
        fee_type="transaction_fee",
        calculation=FixedFee(amount=D(amount)),
        **kwargs,
    )


class TestRuleSelection:
    """Test FeeCatalog.select_fee_rule."""

    def test_explicit_tier_beats_wildcard(self, fee_catalog):
        """A rule listing the tier wins over an ALL rule."""
        fee_catalog.create_rule(fixed_rule("Everyone", "5.00", applicable_tiers=("ALL",)))
        fee_catalog.create_rule(fixed_rule("Premium only", "2.00", applicable_tiers=("PREMIUM",)))

        assert fee_catalog.select_fee_rule("transfer", tier="PREMIUM").name == "Premium only"
        assert fee_catalog.select_fee_rule("transfer", tier="BASIC").name == "Everyone"

    def test_unlisted_tier_gets_default_rule(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Premium only", "2.00", applicable_tiers=("PREMIUM",)))

        rule = fee_catalog.select_fee_rule("transfer", tier="BASIC")

        assert rule == DEFAULT_FEE_RULE
        assert rule.calculation.amount == D("1.00")

    def test_no_rules_falls_back_to_default(self, fee_catalog):
        quote = fee_catalog.estimate("transfer", D("100"))
        assert quote.fee_amount == D("1.00")
        assert quote.total_amount == D("101.00")
        assert quote.rule_id is None

    def test_latest_effective_start_wins_tie(self, fee_catalog):
        """Equal tier and region scores are broken by the latest start."""
        fee_catalog.create_rule(fixed_rule("Old", "5.00", effective_start=datetime(2021, 1, 1)))
        fee_catalog.create_rule(fixed_rule("New", "4.00", effective_start=datetime(2022, 1, 1)))

        assert fee_catalog.select_fee_rule("transfer").name == "New"

    def test_explicit_region_beats_global(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Global", "5.00"))
        fee_catalog.create_rule(
            fixed_rule("Kenya", "3.00", applicable_regions=("KE",), effective_start=datetime(2019, 1, 1))
        )

        assert fee_catalog.select_fee_rule("transfer", region="KE").name == "Kenya"
        assert fee_catalog.select_fee_rule("transfer", region="UG").name == "Global"

    def test_tier_score_outranks_region_score(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Tier match", "5.00", applicable_tiers=("VIP",)))
        fee_catalog.create_rule(fixed_rule("Region match", "3.00", applicable_regions=("KE",)))

        assert fee_catalog.select_fee_rule("transfer", tier="VIP", region="KE").name == "Tier match"

    def test_transaction_type_filter(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Withdrawal", "2.00", transaction_type="withdrawal"))

        assert fee_catalog.select_fee_rule("transfer") == DEFAULT_FEE_RULE
        assert fee_catalog.select_fee_rule("withdrawal").name == "Withdrawal"

    def test_all_type_rules_apply_to_every_type(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Any", "2.00", transaction_type="all"))

        assert fee_catalog.select_fee_rule("refund").name == "Any"

    def test_inactive_rules_ignored(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Disabled", "9.00", is_active=False))
        assert fee_catalog.select_fee_rule("transfer") == DEFAULT_FEE_RULE

    def test_expired_and_future_rules_ignored(self, fee_catalog):
        now = datetime(2024, 6, 1)
        fee_catalog.create_rule(
            fixed_rule("Expired", "9.00", effective_start=datetime(2023, 1, 1), effective_end=datetime(2024, 1, 1))
        )
        fee_catalog.create_rule(fixed_rule("Future", "9.00", effective_start=datetime(2025, 1, 1)))

        assert fee_catalog.select_fee_rule("transfer", now=now) == DEFAULT_FEE_RULE

    def test_effective_end_is_exclusive(self, fee_catalog):
        end = datetime(2024, 1, 1)
        fee_catalog.create_rule(fixed_rule("Ending", "9.00", effective_end=end))

        assert fee_catalog.select_fee_rule("transfer", now=datetime(2023, 12, 31, 23, 59)).name == "Ending"
        assert fee_catalog.select_fee_rule("transfer", now=end) == DEFAULT_FEE_RULE

    def test_deactivated_rule_no_longer_selected(self, fee_catalog):
        rule_id = fee_catalog.create_rule(fixed_rule("Flat", "2.00"))
        fee_catalog.deactivate_rule(rule_id)

        assert fee_catalog.select_fee_rule("transfer") == DEFAULT_FEE_RULE

        fee_catalog.activate_rule(rule_id)
        assert fee_catalog.select_fee_rule("transfer").id == rule_id


def test_applicability_score():
    assert applicability_score(("STANDARD",), "STANDARD", "ALL") == 10
    assert applicability_score(("ALL",), "STANDARD", "ALL") == 5
    assert applicability_score(("BASIC",), "STANDARD", "ALL") == 0


class TestEstimate:
    """Test FeeCatalog.estimate."""

    def test_estimate_uses_selected_rule(self, fee_catalog, standard_transfer_rule):
        quote = fee_catalog.estimate("transfer", D("1000"), tier="STANDARD")

        assert quote.fee_amount == D("25.00")
        assert quote.total_amount == D("1025.00")
        assert quote.fee_type == "transaction_fee"
        assert quote.calculation_type == "percentage"
        assert quote.rule_id == standard_transfer_rule.id

    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    def test_estimate_rejects_bad_amounts(self, fee_catalog, amount):
        with pytest.raises(ValidationError):
            fee_catalog.estimate("transfer", amount)


class TestRuleManagement:
    """Test creating and looking up fee rules."""

    def test_create_round_trips_tiered_brackets(self, fee_catalog):
        brackets = (
            FeeBracket(D("0"), D("100"), fixed_amount=D("1.00")),
            FeeBracket(D("100.01"), D("1000"), percentage_rate=D("2.0")),
        )
        rule_id = fee_catalog.create_rule(
            FeeRule(
                name="Tiered",
                fee_type="transaction_fee",
                transaction_type="transfer",
                calculation=TieredFee(brackets=brackets),
                applicable_tiers=("basic", "standard"),
            )
        )

        stored = fee_catalog.require_rule(rule_id)
        assert stored.calculation.brackets == brackets
        assert stored.applicable_tiers == ("BASIC", "STANDARD")
        assert stored.effective_start is not None

    @pytest.mark.parametrize(
        "changes",
        [
            {"name": "  "},
            {"fee_type": "tip"},
            {"transaction_type": "loan"},
            {"minimum_fee": D("-1")},
            {"minimum_fee": D("10"), "maximum_fee": D("5")},
            {"calculation": FixedFee(amount=D("-1"))},
            {"calculation": TieredFee(brackets=())},
            {"calculation": TieredFee(brackets=(FeeBracket(D("10"), D("5")),))},
            {"applicable_tiers": ("GOLD",)},
            {"applicable_tiers": ()},
            {"applicable_regions": ()},
            {"effective_start": datetime(2024, 1, 1), "effective_end": datetime(2023, 1, 1)},
        ],
    )
    def test_create_rejects_invalid_rules(self, fee_catalog, changes):
        values = {
            "name": "Rule",
            "fee_type": "transaction_fee",
            "transaction_type": "transfer",
            "calculation": PercentageFee(rate=D("1.0")),
        }
        values.update(changes)
        with pytest.raises(ValidationError):
            fee_catalog.create_rule(FeeRule(**values))
        assert fee_catalog.list_rules() == []

    def test_require_missing_rule(self, fee_catalog):
        with pytest.raises(NotFoundError):
            fee_catalog.require_rule(999)
        assert fee_catalog.get_rule(999) is None

    def test_deactivate_missing_rule(self, fee_catalog):
        with pytest.raises(NotFoundError):
            fee_catalog.deactivate_rule(999)

    def test_list_rules_by_type(self, fee_catalog):
        fee_catalog.create_rule(fixed_rule("Transfer", "1.00"))
        fee_catalog.create_rule(fixed_rule("Withdrawal", "1.00", transaction_type="withdrawal"))
        fee_catalog.create_rule(fixed_rule("Any", "1.00", transaction_type="all"))

        names = {rule.name for rule in fee_catalog.list_rules(transaction_type="withdrawal")}
        assert names == {"Withdrawal", "Any"}
        assert len(fee_catalog.list_rules()) == 3


class TestDefaultRules:
    """Test the starter rule set."""

    def test_install_defaults_is_idempotent(self, fee_catalog):
        created = fee_catalog.install_defaults()
        assert len(created) == 8
        assert fee_catalog.install_defaults() == []
        assert len(fee_catalog.list_rules()) == 8

    def test_default_transfer_fees_per_tier(self, fee_catalog):
        fee_catalog.install_defaults()

        assert fee_catalog.estimate("transfer", D("1000"), tier="STANDARD").fee_amount == D("25.00")
        assert fee_catalog.estimate("transfer", D("1000"), tier="BASIC").fee_amount == D("30.00")
        assert fee_catalog.estimate("transfer", D("1000"), tier="PREMIUM").fee_amount == D("15.00")
        assert fee_catalog.estimate("transfer", D("1000"), tier="VIP").fee_amount == D("10.00")

    def test_default_withdrawal_fees(self, fee_catalog):
        fee_catalog.install_defaults()

        standard = fee_catalog.estimate("withdrawal", D("100"), tier="STANDARD")
        assert standard.fee_amount == D("1.50")
        assert standard.fee_type == "withdrawal_fee"
        assert fee_catalog.estimate("withdrawal", D("250"), tier="PREMIUM").fee_amount == D("1.00")

    def test_example_rules_installed_inactive(self, fee_catalog):
        fee_catalog.install_defaults()

        inactive = {rule.name for rule in fee_catalog.list_rules() if not rule.is_active}
        assert inactive == {"Tiered Transfer Fee", "Standard Service Fee"}
