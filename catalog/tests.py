from decimal import Decimal

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from .models import Product, Service


class SearchViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("catalog:search")

    def test_short_queries_return_nothing(self):
        Product.objects.create(name="A4 Flyers")
        for query in ("", "a", " a "):
            with self.subTest(query=query):
                response = self.client.get(self.url, {"q": query})
                self.assertEqual(response.data, {"products": [], "services": []})

    def test_matches_name_description_and_slug(self):
        by_name = Product.objects.create(name="Premium Business Cards", base_price=Decimal("19.99"))
        by_description = Product.objects.create(name="Postcards", description="Cards for direct mail")
        by_slug = Product.objects.create(name="Thank You Notes", slug="greeting-cards")
        Product.objects.create(name="Vinyl Banners")
        service = Service.objects.create(title="Custom Card Design", icon="PenTool")

        response = self.client.get(self.url, {"q": "card"})

        self.assertEqual(
            {p["id"] for p in response.data["products"]},
            {by_name.id, by_description.id, by_slug.id},
        )
        self.assertEqual(response.data["services"][0]["icon"], "PenTool")
        self.assertEqual(response.data["services"][0]["id"], service.id)

        business_cards = next(p for p in response.data["products"] if p["id"] == by_name.id)
        self.assertEqual(business_cards["slug"], "premium-business-cards")
        self.assertEqual(business_cards["basePrice"], Decimal("19.99"))

    def test_result_limits(self):
        for index in range(10):
            Product.objects.create(name=f"Sticker {index}")
            Service.objects.create(title=f"Sticker design {index}")

        response = self.client.get(self.url, {"q": "sticker"})

        self.assertEqual(len(response.data["products"]), 8)
        self.assertEqual(len(response.data["services"]), 5)

    def test_inactive_entries_are_hidden(self):
        Product.objects.create(name="Old Brochure", is_active=False)
        response = self.client.get(self.url, {"q": "brochure"})
        self.assertEqual(response.data["products"], [])

    @override_settings(SEARCH_MIN_QUERY_LENGTH=4)
    def test_minimum_length_setting(self):
        Product.objects.create(name="Mugs")
        self.assertEqual(self.client.get(self.url, {"q": "mug"}).data["products"], [])
        self.assertEqual(len(self.client.get(self.url, {"q": "mugs"}).data["products"]), 1)


class CatalogModelTests(TestCase):
    def test_slugs_are_generated(self):
        self.assertEqual(Product.objects.create(name="Marketing Flyers").slug, "marketing-flyers")
        self.assertEqual(Service.objects.create(title="Book Binding").slug, "book-binding")
