from datetime import date
from decimal import Decimal

from django.test import TestCase

from labor.models import LaborPosting
from offers import services
from offers.models import Offer
from offers.profit import product_profit
from projects.tests.factories import line_payload, make_product, make_project, offer_payload, scenario_line


class ProductProfitTests(TestCase):
    def setUp(self):
        self.project = make_project()
        self.sofa = make_product(self.project, name="Sofa")
        self.shelf = make_product(self.project, name="Shelf")

    def _accept(self, payload):
        offer = services.save_offer(payload)
        services.change_status(offer.pk, Offer.Status.ACCEPTED)
        return offer

    def _post_labor(self, product, *amounts):
        for amount in amounts:
            LaborPosting.objects.create(
                product=product, worker_name="Mirza", work_date=date(2024, 5, 2), amount=Decimal(amount)
            )

    def test_profit_with_revenue_proportional_shares(self):
        offer = self._accept(
            offer_payload(
                self.project,
                [scenario_line(self.sofa), line_payload(self.shelf, material_cost="550")],
                transport_cost="30",
                onsite_assembly=True,
                onsite_discount="50",
            )
        )
        self._post_labor(self.sofa, "120", "80")

        result = product_profit(self.sofa.id)

        self.assertEqual(result.offer_id, offer.id)
        self.assertEqual(result.selling_price, Decimal("450.00"))
        self.assertEqual(result.material_cost, Decimal("130.00"))
        self.assertEqual(result.labor_cost, Decimal("200.00"))
        self.assertEqual(result.transport_share, Decimal("13.50"))
        self.assertEqual(result.discount_share, Decimal("22.50"))
        self.assertEqual(result.profit, Decimal("120.00"))
        self.assertEqual(result.profit_margin, Decimal("26.67"))

    def test_material_cost_scales_with_quantity(self):
        self._accept(offer_payload(self.project, [line_payload(self.sofa, quantity="2", material_cost="40", margin="10")]))
        result = product_profit(self.sofa.id)
        self.assertEqual(result.selling_price, Decimal("100.00"))
        self.assertEqual(result.material_cost, Decimal("80.00"))
        self.assertEqual(result.profit, Decimal("20.00"))

    def test_margin_undefined_for_zero_selling_price(self):
        self._accept(offer_payload(self.project, [line_payload(self.sofa)], transport_cost="30"))
        result = product_profit(self.sofa.id)
        self.assertEqual(result.selling_price, Decimal("0"))
        self.assertIsNone(result.profit_margin)
        self.assertEqual(result.transport_share, Decimal("0"))

    def test_no_accepted_offer(self):
        services.save_offer(offer_payload(self.project, [line_payload(self.sofa, material_cost="10")]))
        self.assertIsNone(product_profit(self.sofa.id))

    def test_excluded_line_does_not_count(self):
        self._accept(
            offer_payload(self.project, [line_payload(self.sofa, included=False), line_payload(self.shelf, material_cost="5")])
        )
        self.assertIsNone(product_profit(self.sofa.id))
