from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from offers import services
from offers.models import Offer, OfferProduct
from projects.tests.factories import (
    line_payload,
    make_product,
    make_project,
    make_user,
    offer_payload,
    scenario_line,
)


class OfferAPITests(APITestCase):
    def setUp(self):
        self.user, self.token = make_user()
        self.project = make_project()
        self.product = make_product(self.project, name="Upper cabinets")
        self.other = make_product(self.project, name="Island")
        self.list_url = reverse("offer-list")

    def auth(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {self.token.key}")

    def _create(self, *lines, **overrides):
        return services.save_offer(offer_payload(self.project, list(lines), **overrides))

    def test_requires_authentication(self):
        res = self.client.get(self.list_url)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_offer_returns_totals(self):
        self.auth()
        payload = offer_payload(self.project, [scenario_line(self.product)], transport_cost="30")
        res = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["status"], "draft")
        self.assertEqual(res.data["subtotal"], "450.00")
        self.assertEqual(res.data["total"], "561.60")
        self.assertEqual(res.data["version"], 1)
        self.assertEqual(len(res.data["products"]), 1)
        self.assertEqual(res.data["products"][0]["extras"][0]["total"], "30.00")

    def test_create_without_included_line_is_400(self):
        self.auth()
        payload = offer_payload(self.project, [line_payload(self.product, included=False)])
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("products", res.data)

    def test_create_with_unknown_project_is_400(self):
        self.auth()
        payload = offer_payload(self.project, [line_payload(self.product)])
        payload["project_id"] = 9999
        res = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("project_id", res.data)

    def test_list_filters_by_status(self):
        self.auth()
        sent = self._create(line_payload(self.product))
        services.change_status(sent.pk, Offer.Status.SENT)
        self._create(line_payload(self.other))

        res = self.client.get(self.list_url, {"status": "sent"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["id"], sent.id)

        res = self.client.get(self.list_url, {"status": "nope"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_put_replaces_draft(self):
        self.auth()
        offer = self._create(line_payload(self.product, material_cost="10"))
        url = reverse("offer-detail", args=[offer.id])
        payload = offer_payload(self.project, [line_payload(self.other, material_cost="25")], include_tax=False)
        payload["version"] = 1

        res = self.client.put(url, payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["version"], 2)
        self.assertEqual(res.data["total"], "25.00")
        self.assertEqual([l["product_id"] for l in res.data["products"]], [self.other.id])

    def test_put_with_stale_version_is_409(self):
        self.auth()
        offer = self._create(line_payload(self.product))
        services.save_offer(offer_payload(self.project, [line_payload(self.product)]), offer_id=offer.pk)
        payload = offer_payload(self.project, [line_payload(self.product)])
        payload["version"] = 1

        res = self.client.put(reverse("offer-detail", args=[offer.id]), payload, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

    def test_storage_failure_is_503_and_keeps_the_offer(self):
        self.auth()
        offer = self._create(line_payload(self.product, material_cost="10"))
        payload = offer_payload(self.project, [line_payload(self.product, material_cost="99")])
        payload["version"] = 1

        with mock.patch.object(OfferProduct.objects, "create", side_effect=DatabaseError("connection lost")):
            res = self.client.put(reverse("offer-detail", args=[offer.id]), payload, format="json")

        self.assertEqual(res.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn("detail", res.data)
        offer.refresh_from_db()
        self.assertEqual(offer.version, 1)
        self.assertEqual(offer.products.get().material_cost, Decimal("10.00"))

    def test_put_on_sent_offer_is_forbidden(self):
        self.auth()
        offer = self._create(line_payload(self.product))
        services.change_status(offer.pk, Offer.Status.SENT)
        res = self.client.put(
            reverse("offer-detail", args=[offer.id]),
            offer_payload(self.project, [line_payload(self.product)]),
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_patch_is_not_allowed(self):
        self.auth()
        offer = self._create(line_payload(self.product))
        res = self.client.patch(reverse("offer-detail", args=[offer.id]), {"notes": "x"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_get_and_delete(self):
        self.auth()
        offer = self._create(line_payload(self.product))
        url = reverse("offer-detail", args=[offer.id])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_accept_conflict_is_409_with_product_ids(self):
        self.auth()
        first = self._create(line_payload(self.product))
        second = self._create(line_payload(self.product), line_payload(self.other))
        services.change_status(first.pk, Offer.Status.ACCEPTED)

        res = self.client.post(reverse("offer-status", args=[second.id]), {"status": "accepted"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["conflicting_product_ids"], [self.product.id])

    def test_status_change(self):
        self.auth()
        offer = self._create(line_payload(self.product))
        res = self.client.post(reverse("offer-status", args=[offer.id]), {"status": "sent"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], "sent")

        res = self.client.post(reverse("offer-status", args=[9999]), {"status": "sent"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_draft_endpoint_skips_claimed_products(self):
        self.auth()
        accepted = self._create(line_payload(self.product))
        services.change_status(accepted.pk, Offer.Status.ACCEPTED)

        res = self.client.get(reverse("offer-draft", args=[self.project.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([l["product_id"] for l in res.data["products"]], [self.other.id])
        self.assertEqual(Offer.objects.count(), 1)

    def test_totals_endpoint(self):
        self.auth()
        offer = self._create(scenario_line(self.product), transport_cost="30")
        res = self.client.get(reverse("offer-totals", args=[offer.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(
            res.data,
            {"subtotal": "450.00", "transport": "30.00", "discount": "0.00", "tax_amount": "81.60", "total": "561.60"},
        )

    def test_profit_endpoint(self):
        self.auth()
        url = reverse("product-profit", args=[self.product.id])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

        offer = self._create(line_payload(self.product, material_cost="80", margin="20"))
        services.change_status(offer.pk, Offer.Status.ACCEPTED)
        res = self.client.get(url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["selling_price"], "100.00")
        self.assertEqual(res.data["profit"], "20.00")
        self.assertEqual(res.data["profit_margin"], "20.00")
        self.assertEqual(Decimal(res.data["labor_cost"]), Decimal("0"))
