"""
Tests for display prices, plan totals and package quotes.
"""

from __future__ import annotations

from partyplan.application.use_cases.pricing import (
    display_price,
    generate_default_packages,
    plan_total,
    quote_package,
)
from partyplan.domain.entities.party_details import PartyDetails
from partyplan.domain.entities.party_plan import PartyPlan, PlanSlot
from partyplan.domain.entities.supplier import Addon, Package, Supplier, WeekendPremium


def _entertainer(**kwargs) -> Supplier:
    defaults = dict(id="ent-1", name="Magic Max", category="Entertainment", price=120.0, price_from=100.0)
    defaults.update(kwargs)
    return Supplier(**defaults)


def _party_bags(**kwargs) -> Supplier:
    defaults = dict(id="bags-1", name="Bag It Up", category="Party Bags", price=6.0, price_from=5.0)
    defaults.update(kwargs)
    return Supplier(**defaults)


def test_scenario_d_party_bags_price_times_quantity():
    slot = PlanSlot(supplier=_party_bags(), package=Package(id="p", name="Bags", price=4.0, quantity=20))
    assert display_price(slot, None, ()).base_price == 80


def test_party_bags_base_price_resolution_order():
    supplier = _party_bags()
    package = Package(id="p", name="Bags", price=4.0, quantity=20, total_price=90.0)

    with_metadata = PlanSlot(supplier=supplier, package=package, metadata={"total_price": 75.0})
    assert display_price(with_metadata).base_price == 75.0

    assert display_price(PlanSlot(supplier=supplier, package=package)).base_price == 90.0
    assert display_price(PlanSlot(supplier=supplier, package=Package(id="p", name="Bags"))).base_price == 6.0

    no_prices = _party_bags(price=None)
    assert display_price(PlanSlot(supplier=no_prices, package=None)).base_price == 5.0
    assert display_price(PlanSlot(supplier=_party_bags(price=None, price_from=None))).base_price == 0.0


def test_party_bags_quantity_falls_back_to_guest_count():
    slot = PlanSlot(supplier=_party_bags(), package=Package(id="p", name="Bags", price=4.0))
    assert display_price(slot, PartyDetails(guest_count=12)).base_price == 48.0


def test_other_categories_use_package_then_supplier_price():
    supplier = _entertainer()
    assert display_price(PlanSlot(supplier=supplier, package=Package(id="p", name="Show", price=95.0))).base_price == 95.0
    assert display_price(PlanSlot(supplier=supplier, package=Package(id="p", name="Show"))).base_price == 120.0
    assert display_price(PlanSlot(supplier=_entertainer(price=None))).base_price == 0.0


def test_display_price_adds_attached_addons():
    slot = PlanSlot(supplier=_entertainer(), package=Package(id="p", name="Show", price=100.0))
    addons = (Addon(id="a1", name="Balloon modelling", price=15.0), Addon(id="a2", name="Glitter", price=5.0))

    price = display_price(slot, None, addons)
    assert price.base_price == 100.0
    assert price.total_price == 120.0


def test_scenario_e_plan_total_with_attached_addon():
    plan = PartyPlan().occupy("entertainment", _entertainer(), Package(id="p", name="Show", price=100.0))
    plan = plan.attach_addon(Addon(id="a1", name="Balloon modelling", price=15.0, attached_to="entertainment"))

    assert plan_total(plan) == 115
    assert plan.to_total() == 115


def test_plan_total_counts_standalone_and_orphaned_addons_once():
    plan = PartyPlan().occupy("entertainment", _entertainer(), Package(id="p", name="Show", price=100.0))
    plan = plan.attach_addon(Addon(id="a1", name="Attached", price=15.0, attached_to="entertainment"))
    plan = plan.attach_addon(Addon(id="a2", name="Standalone", price=30.0))
    plan = plan.attach_addon(Addon(id="a3", name="Orphan", price=7.0, attached_to="catering"))

    assert plan_total(plan) == 152.0


def test_plan_total_is_idempotent():
    plan = PartyPlan().occupy("venue", _entertainer(category="Venues"), Package(id="v", name="Hall", price=250.0))
    plan = plan.attach_addon(Addon(id="a", name="Extra chairs", price=20.0))

    first = plan_total(plan)
    second = plan_total(plan)
    assert first == second == 270.0


def test_quote_applies_weekend_premium_and_extra_hours():
    supplier = _entertainer(
        weekend_premium=WeekendPremium(enabled=True, type="fixed", amount=25.0),
        extra_hour_rate=40.0,
    )
    package = Package(id="p", name="Show", price=100.0)
    details = PartyDetails(duration_hours=3.5)

    weekend = quote_package(supplier, package, "2025-06-14", details)
    assert weekend.weekend_premium == 25.0
    assert weekend.extra_hours == 1.5
    assert weekend.extra_hour_cost == 60.0
    assert weekend.package_price == 185.0

    weekday = quote_package(supplier, package, "2025-06-11")
    assert weekday.weekend_premium == 0.0
    assert weekday.package_price == 100.0


def test_quote_percentage_premium_and_addons():
    supplier = _entertainer(weekend_premium=WeekendPremium(enabled=True, type="percentage", percentage=15.0))
    quote = quote_package(
        supplier,
        Package(id="p", name="Show", price=90.0),
        "2025-06-15",
        addons=(Addon(id="a", name="Glitter", price=10.0),),
    )

    assert quote.weekend_premium == 14.0
    assert quote.addons_total == 10.0
    assert quote.final_price == 114.0


def test_quote_skips_premium_for_fixed_price_categories():
    cakes = Supplier(
        id="cake-1",
        name="Cake Co",
        category="Cakes",
        weekend_premium=WeekendPremium(enabled=True, type="fixed", amount=25.0),
        extra_hour_rate=40.0,
    )
    quote = quote_package(cakes, Package(id="c", name="Sponge", price=60.0), "2025-06-14", PartyDetails(duration_hours=4))

    assert quote.is_fixed_price
    assert quote.package_price == 60.0


def test_quote_party_bags_per_guest():
    quote = quote_package(_party_bags(), Package(id="p", name="Bags", price=4.5), None, PartyDetails(guest_count=12))
    assert quote.base_price == 54.0
    assert quote.guest_count == 12

    default_guests = quote_package(_party_bags(), Package(id="p", name="Bags", price=4.5))
    assert default_guests.base_price == 45.0


def test_generated_default_packages_scale_price_from():
    packages = generate_default_packages(_entertainer(price_from=80.0))

    assert [p.id for p in packages] == ["basic", "premium", "deluxe"]
    assert [p.price for p in packages] == [80.0, 120.0, 160.0]
    assert packages[0].description == "Basic entertainment package"

    fallback = generate_default_packages(_entertainer(price_from=None))
    assert [p.price for p in fallback] == [100.0, 150.0, 200.0]

    authored = (Package(id="gold", name="Gold", price=300.0),)
    assert generate_default_packages(_entertainer(packages=authored)) == authored
