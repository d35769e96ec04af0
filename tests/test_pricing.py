"""Pricing calculator: one test class per pricing model."""

import pytest

from cleanbook.schemas.pricing import (
    AreaBasedPricing,
    AreaSizePreset,
    BasePlusAddonsPricing,
    CartItemSelection,
    CustomQuotePricing,
    FixedItemPricing,
    PricingFrequency,
    PricingOption,
)
from cleanbook.services.errors import BookingValidationError, InvalidQuantity, InvalidSelection
from cleanbook.services.pricing import calculate_price, pricing_from_service, quote_line


def selection(**kwargs) -> CartItemSelection:
    return CartItemSelection(service_id=1, **kwargs)


class TestFixedItem:
    def test_price_and_duration_scale_with_quantity(self):
        quote = calculate_price(FixedItemPricing(price=45.5), selection(quantity=3), duration_min=30)

        assert quote.price == 136.5
        assert quote.duration_min == 90
        assert quote.breakdown.final_price == 136.5

    @pytest.mark.parametrize("bad", [0, -1, True])
    def test_rejects_non_positive_quantity(self, bad):
        sel = CartItemSelection.model_construct(service_id=1, quantity=bad, selected_options=[])
        with pytest.raises(InvalidQuantity):
            calculate_price(FixedItemPricing(price=10), sel, duration_min=30)


class TestAreaBased:
    pricing = AreaBasedPricing(
        area_sizes=[
            AreaSizePreset(name="Small", sqft=500, price=80),
            AreaSizePreset(name="Large", sqft=2000, price=250),
        ],
        price_per_unit=0.12,
        minimum_price=100,
    )

    def test_preset_below_minimum_is_raised_to_minimum(self):
        quote = calculate_price(self.pricing, selection(area_size="Small"), duration_min=120)

        assert quote.price == 100
        assert quote.area_size == "Small"
        assert quote.area_value == 500
        assert quote.breakdown.area_price == 80
        assert quote.breakdown.minimum_price == 100

    def test_preset_above_minimum_keeps_its_price(self):
        quote = calculate_price(self.pricing, selection(area_size="Large", quantity=2), duration_min=120)

        assert quote.price == 500

    def test_custom_area(self):
        quote = calculate_price(
            self.pricing, selection(area_size="custom", area_value=1500), duration_min=120,
        )

        assert quote.price == 180
        assert quote.area_value == 1500
        assert quote.area_size == "Custom: 1500 sqft"

    def test_custom_area_accepts_numeric_string(self):
        quote = calculate_price(self.pricing, selection(area_value="1000"), duration_min=60)

        assert quote.price == 120

    @pytest.mark.parametrize("value", [0, -20, "abc", None, "nan", "inf"])
    def test_invalid_custom_area(self, value):
        with pytest.raises(InvalidSelection):
            calculate_price(self.pricing, selection(area_size="custom", area_value=value), duration_min=60)

    def test_unknown_preset(self):
        with pytest.raises(InvalidSelection):
            calculate_price(self.pricing, selection(area_size="Mansion"), duration_min=60)

    def test_custom_area_without_unit_price(self):
        presets_only = AreaBasedPricing(area_sizes=[AreaSizePreset(name="Small", sqft=500, price=80)])

        with pytest.raises(InvalidSelection):
            calculate_price(presets_only, selection(area_value=700), duration_min=60)

    @pytest.mark.parametrize("area", [
        {"area_size": "Small"},
        {"area_size": "Large"},
        {"area_value": 1},
        {"area_value": 400},
        {"area_value": 5000},
    ])
    def test_never_below_minimum(self, area):
        quote = calculate_price(self.pricing, selection(**area), duration_min=60)

        assert quote.price >= self.pricing.minimum_price


class TestBasePlusAddons:
    pricing = BasePlusAddonsPricing(
        price=120,
        base_price=100,
        options=[
            PricingOption(id=1, name="Inside fridge", price=25, max_quantity=1),
            PricingOption(id=2, name="Extra bathroom", price=30, max_quantity=None),
        ],
        frequencies=[
            PricingFrequency(id=7, name="One time", discount_percent=0),
            PricingFrequency(id=8, name="Weekly", discount_percent=15),
        ],
    )

    def test_base_options_and_frequency_discount(self):
        quote = calculate_price(
            self.pricing,
            selection(
                selected_options=[{"option_id": 1, "quantity": 1}, {"option_id": 2, "quantity": 2}],
                selected_frequency_id=8,
            ),
            duration_min=180,
        )

        # (100 + 25 + 60) × (1 - 0.15)
        assert quote.price == 157.25
        assert quote.breakdown.subtotal == 185
        assert quote.breakdown.options_total == 85
        assert quote.breakdown.discount_amount == 27.75
        assert quote.selected_frequency.name == "Weekly"
        assert [o.quantity for o in quote.selected_options] == [1, 2]

    def test_quantity_multiplies_subtotal(self):
        quote = calculate_price(
            self.pricing,
            selection(quantity=2, selected_options=[{"option_id": 2, "quantity": 1}]),
            duration_min=60,
        )

        assert quote.price == 260

    def test_option_quantity_is_clamped(self):
        quote = calculate_price(
            self.pricing,
            selection(selected_options=[{"option_id": 1, "quantity": 5}, {"option_id": 2, "quantity": 50}]),
            duration_min=60,
        )

        # fridge max 1, bathroom default max 10
        assert quote.breakdown.options_total == 25 + 300
        assert [o.quantity for o in quote.selected_options] == [1, 10]

    def test_zero_quantity_options_are_dropped(self):
        quote = calculate_price(
            self.pricing,
            selection(selected_options=[{"option_id": 1, "quantity": 0}, {"option_id": 2, "quantity": -3}]),
            duration_min=60,
        )

        assert quote.selected_options == []
        assert quote.price == 100

    def test_unknown_option(self):
        with pytest.raises(InvalidSelection):
            calculate_price(self.pricing, selection(selected_options=[{"option_id": 99}]), duration_min=60)

    def test_unknown_frequency(self):
        with pytest.raises(InvalidSelection):
            calculate_price(self.pricing, selection(selected_frequency_id=99), duration_min=60)

    def test_base_price_falls_back_to_price(self):
        pricing = BasePlusAddonsPricing(price=120)

        assert calculate_price(pricing, selection(), duration_min=60).price == 120

    def test_identical_inputs_identical_breakdown(self):
        sel = selection(selected_options=[{"option_id": 2, "quantity": 3}], selected_frequency_id=8)

        first = calculate_price(self.pricing, sel, duration_min=60)
        second = calculate_price(self.pricing, sel, duration_min=60)

        assert first == second


class TestCustomQuote:
    def test_not_priced_notes_kept(self):
        quote = calculate_price(
            CustomQuotePricing(minimum_price=150),
            selection(customer_notes="  Post-renovation, 3 floors "),
            duration_min=240,
        )

        assert quote.price == 0
        assert quote.customer_notes == "Post-renovation, 3 floors"
        assert quote.breakdown.minimum_price == 150

    @pytest.mark.parametrize("notes", [None, "", "   "])
    def test_notes_required(self, notes):
        with pytest.raises(InvalidSelection):
            calculate_price(CustomQuotePricing(), selection(customer_notes=notes), duration_min=60)


class TestServiceRows:
    def test_area_based_row(self, make_service):
        service = make_service(
            name="Deep Clean",
            price=80,
            pricing_type="area_based",
            area_sizes=[{"name": "Small", "sqft": 500, "price": 80}],
            minimum_price=100,
        )

        quote = quote_line(service, CartItemSelection(service_id=service.id, area_size="Small"))

        assert quote.price == 100
        assert quote.service_id == service.id

    def test_addons_row_uses_option_ids(self, make_service):
        service = make_service(
            price=90,
            pricing_type="base_plus_addons",
            options=[{"name": "Oven", "price": 20}],
            frequencies=[{"name": "Biweekly", "discount_percent": 10}],
        )
        option_id = service.options[0].id
        frequency_id = service.frequencies[0].id

        quote = quote_line(service, CartItemSelection(
            service_id=service.id,
            selected_options=[{"option_id": option_id, "quantity": 1}],
            selected_frequency_id=frequency_id,
        ))

        assert quote.price == 99

    def test_misconfigured_row(self, make_service):
        service = make_service(pricing_type="area_based", area_sizes=[])

        with pytest.raises(BookingValidationError):
            pricing_from_service(service)
