from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from common.exceptions import ConflictError, DocumentNotFound, PersistenceError, StaleWriteError, ValidationError
from offers import pricing, services
from offers.models import Offer, OfferExtra, OfferProduct
from projects.models import Project
from projects.tests.factories import (
    line_payload,
    make_product,
    make_project,
    offer_payload,
    scenario_line,
)


class SaveOfferTests(TestCase):
    def setUp(self):
        self.project = make_project()
        self.product = make_product(self.project, name="Upper cabinets", material_cost=Decimal("100"))

    def test_reference_scenario_is_stored(self):
        offer = services.save_offer(
            offer_payload(self.project, [scenario_line(self.product)], transport_cost="30")
        )
        offer.refresh_from_db()
        line = offer.products.get()

        self.assertEqual(offer.status, Offer.Status.DRAFT)
        self.assertTrue(offer.offer_number.startswith("P-"))
        self.assertEqual(offer.version, 1)
        self.assertEqual(line.selling_price, Decimal("450.00"))
        self.assertEqual(line.total_price, Decimal("450.00"))
        self.assertEqual(line.extras.get().total, Decimal("30.00"))
        self.assertEqual(offer.subtotal, Decimal("450.00"))
        self.assertEqual(offer.total, Decimal("561.60"))
        self.assertEqual(line.transport_share, Decimal("30.00"))

    def test_missing_project_is_rejected(self):
        payload = offer_payload(self.project, [line_payload(self.product)])
        payload["project_id"] = None
        with self.assertRaises(ValidationError) as ctx:
            services.save_offer(payload)
        self.assertEqual(ctx.exception.field, "project_id")
        self.assertFalse(Offer.objects.exists())

    def test_unknown_project_is_rejected(self):
        payload = offer_payload(self.project, [line_payload(self.product)])
        payload["project_id"] = 9999
        with self.assertRaises(ValidationError):
            services.save_offer(payload)

    def test_no_included_line_is_rejected(self):
        payload = offer_payload(self.project, [line_payload(self.product, included=False)])
        with self.assertRaises(ValidationError) as ctx:
            services.save_offer(payload)
        self.assertEqual(ctx.exception.field, "products")
        self.assertFalse(Offer.objects.exists())

    def test_product_of_another_project_is_rejected(self):
        foreign = make_product(make_project(name="Other"))
        payload = offer_payload(self.project, [line_payload(self.product), line_payload(foreign)])
        with self.assertRaises(ValidationError):
            services.save_offer(payload)
        self.assertFalse(OfferProduct.objects.exists())

    def test_reload_yields_identical_line_totals(self):
        lines = [
            line_payload(
                self.product,
                quantity="3",
                material_cost="33.33",
                margin="0.01",
                labor_workers="1",
                labor_days="1.5",
                labor_daily_rate="12.34",
                extras=[{"name": "Glue", "quantity": "0.5", "unit_price": "3.33"}],
            )
        ]
        payload = offer_payload(self.project, lines, transport_cost="10", onsite_assembly=True, onsite_discount="5")
        offer = services.save_offer(payload)
        first = list(offer.products.values_list("total_price", flat=True))
        first_totals = (offer.subtotal, offer.total)

        again = services.save_offer(payload, offer_id=offer.pk, expected_version=offer.version)
        again.refresh_from_db()
        line = again.products.prefetch_related("extras").get()

        self.assertEqual(list(again.products.values_list("total_price", flat=True)), first)
        self.assertEqual((again.subtotal, again.total), first_totals)
        self.assertEqual(line.total_price, pricing.money(pricing.product_total(line)))
        self.assertEqual(again.subtotal, sum(l.total_price for l in again.products.filter(included=True)))

    def test_resave_replaces_lines_and_bumps_version(self):
        other = make_product(self.project, name="Island")
        offer = services.save_offer(offer_payload(self.project, [line_payload(self.product, material_cost="10")]))
        offer = services.save_offer(
            offer_payload(self.project, [line_payload(other, material_cost="20")]),
            offer_id=offer.pk,
            expected_version=1,
        )
        self.assertEqual(offer.version, 2)
        self.assertEqual(list(offer.products.values_list("product_id", flat=True)), [other.id])

    def test_stale_version_is_rejected(self):
        payload = offer_payload(self.project, [line_payload(self.product, material_cost="10")])
        offer = services.save_offer(payload)
        services.save_offer(payload, offer_id=offer.pk, expected_version=1)

        with self.assertRaises(StaleWriteError):
            services.save_offer(
                offer_payload(self.project, [line_payload(self.product, material_cost="99")]),
                offer_id=offer.pk,
                expected_version=1,
            )
        offer.refresh_from_db()
        self.assertEqual(offer.version, 2)
        self.assertEqual(offer.products.get().material_cost, Decimal("10.00"))

    def test_failed_resave_leaves_the_stored_offer_untouched(self):
        offer = services.save_offer(
            offer_payload(self.project, [line_payload(self.product, material_cost="10")], notes="first")
        )
        payload = offer_payload(self.project, [scenario_line(self.product)], notes="second")

        with mock.patch.object(OfferExtra.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(PersistenceError):
                services.save_offer(payload, offer_id=offer.pk, expected_version=1)

        offer.refresh_from_db()
        line = offer.products.get()
        self.assertEqual(offer.version, 1)
        self.assertEqual(offer.notes, "first")
        self.assertEqual(offer.subtotal, Decimal("10.00"))
        self.assertEqual(line.material_cost, Decimal("10.00"))
        self.assertFalse(line.extras.exists())

    def test_only_drafts_can_be_resaved(self):
        payload = offer_payload(self.project, [line_payload(self.product)])
        offer = services.save_offer(payload)
        services.change_status(offer.pk, Offer.Status.SENT)
        with self.assertRaises(ValidationError):
            services.save_offer(payload, offer_id=offer.pk)

    def test_offer_totals_recomputes_from_lines(self):
        offer = services.save_offer(
            offer_payload(self.project, [scenario_line(self.product)], transport_cost="30")
        )
        totals = services.offer_totals(offer.pk)
        self.assertEqual(totals.subtotal, Decimal("450.00"))
        self.assertEqual(pricing.money(totals.total), Decimal("561.60"))


class BuildDraftTests(TestCase):
    def setUp(self):
        self.project = make_project()
        self.p1 = make_product(self.project, name="Wardrobe", quantity=2, material_cost=Decimal("120"))
        self.p2 = make_product(self.project, name="Desk")

    def test_draft_lists_all_products(self):
        draft = services.build_draft(self.project.id)
        self.assertEqual([l["product_id"] for l in draft["products"]], [self.p1.id, self.p2.id])
        self.assertEqual(draft["currency"], "KM")
        self.assertEqual(draft["products"][0]["material_cost"], Decimal("120"))
        self.assertEqual(draft["products"][0]["quantity"], Decimal("2"))
        self.assertFalse(Offer.objects.exists())

    def test_draft_leaves_out_products_of_accepted_offers(self):
        accepted = services.save_offer(offer_payload(self.project, [line_payload(self.p1)]))
        services.change_status(accepted.pk, Offer.Status.ACCEPTED)

        draft = services.build_draft(self.project.id)
        self.assertEqual([l["product_id"] for l in draft["products"]], [self.p2.id])

    def test_unknown_project(self):
        with self.assertRaises(ValidationError):
            services.build_draft(424242)


class ChangeStatusTests(TestCase):
    def setUp(self):
        self.project = make_project()
        self.p = make_product(self.project, name="Bed")
        self.q = make_product(self.project, name="Nightstand")

    def _offer(self, *products, project=None):
        project = project or self.project
        return services.save_offer(offer_payload(project, [line_payload(p, material_cost="10") for p in products]))

    def test_conflicting_accept_is_rejected_with_product_ids(self):
        a = self._offer(self.p)
        b = self._offer(self.p, self.q)
        services.change_status(a.pk, Offer.Status.ACCEPTED)

        with self.assertRaises(ConflictError) as ctx:
            services.change_status(b.pk, Offer.Status.ACCEPTED)
        self.assertEqual(ctx.exception.product_ids, [self.p.id])
        b.refresh_from_db()
        self.assertEqual(b.status, Offer.Status.DRAFT)
        self.assertIsNone(b.accepted_at)

    def test_accept_locks_the_project_row(self):
        offer = self._offer(self.p)
        with mock.patch.object(
            Project.objects, "select_for_update", wraps=Project.objects.select_for_update
        ) as lock:
            services.change_status(offer.pk, Offer.Status.ACCEPTED)
        lock.assert_called()

    def test_sending_does_not_lock_the_project_row(self):
        offer = self._offer(self.p)
        with mock.patch.object(
            Project.objects, "select_for_update", wraps=Project.objects.select_for_update
        ) as lock:
            services.change_status(offer.pk, Offer.Status.SENT)
        lock.assert_not_called()

    def test_excluded_lines_do_not_conflict(self):
        a = self._offer(self.p)
        services.change_status(a.pk, Offer.Status.ACCEPTED)
        b = services.save_offer(
            offer_payload(self.project, [line_payload(self.p, included=False), line_payload(self.q)])
        )
        services.change_status(b.pk, Offer.Status.ACCEPTED)
        b.refresh_from_db()
        self.assertTrue(b.is_accepted)

    def test_other_projects_never_conflict(self):
        other_project = make_project(name="Office")
        other_product = make_product(other_project, name="Bed")
        services.change_status(self._offer(self.p).pk, Offer.Status.ACCEPTED)

        offer = self._offer(other_product, project=other_project)
        services.change_status(offer.pk, Offer.Status.ACCEPTED)
        offer.refresh_from_db()
        self.assertTrue(offer.is_accepted)
        self.assertIsNotNone(offer.accepted_at)

    def test_status_changes_move_the_project(self):
        offer = self._offer(self.p)
        services.change_status(offer.pk, Offer.Status.SENT)
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, Project.Status.OFFERED)

        services.change_status(offer.pk, Offer.Status.ACCEPTED)
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, Project.Status.APPROVED)

    def test_rejecting_the_last_open_offer_cancels_the_project(self):
        offer = self._offer(self.p)
        services.change_status(offer.pk, Offer.Status.SENT)
        services.change_status(offer.pk, Offer.Status.REJECTED)
        self.project.refresh_from_db()
        self.assertEqual(self.project.status, Project.Status.CANCELLED)

    def test_same_status_is_a_no_op(self):
        offer = self._offer(self.p)
        again = services.change_status(offer.pk, Offer.Status.DRAFT)
        self.assertEqual(again.version, 1)

    def test_unknown_status_and_offer(self):
        offer = self._offer(self.p)
        with self.assertRaises(ValidationError):
            services.change_status(offer.pk, "archived")
        with self.assertRaises(DocumentNotFound):
            services.change_status(9999, Offer.Status.SENT)

    def test_delete_offer(self):
        offer = self._offer(self.p)
        services.delete_offer(offer.pk)
        self.assertFalse(Offer.objects.exists())
        self.assertFalse(OfferProduct.objects.exists())
