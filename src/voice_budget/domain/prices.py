import re
from decimal import Decimal

from pydantic import BaseModel
from rapidfuzz import fuzz, process

from voice_budget.models import Bucket, Money


class PriceEstimate(BaseModel):
    item: str
    price: Money
    category: str
    bucket: Bucket
    score: float


# Typical prices for things people buy often.
COMMON_PRICES: dict[str, tuple[str, str, Bucket]] = {
    "mcdonalds #7": ("7.50", "Dining", Bucket.WANT),
    "mcdonalds big mac": ("5.99", "Dining", Bucket.WANT),
    "mcdonalds quarter pounder": ("6.49", "Dining", Bucket.WANT),
    "mcdonalds mcdouble": ("3.99", "Dining", Bucket.WANT),
    "mcdonalds fries": ("3.99", "Dining", Bucket.WANT),
    "starbucks venti": ("5.45", "Dining", Bucket.WANT),
    "starbucks grande": ("4.95", "Dining", Bucket.WANT),
    "starbucks tall": ("4.45", "Dining", Bucket.WANT),
    "gas": ("3.50", "Transport", Bucket.NEED),
    "milk": ("4.99", "Groceries", Bucket.NEED),
    "bread": ("3.99", "Groceries", Bucket.NEED),
    "eggs": ("5.99", "Groceries", Bucket.NEED),
    "movie ticket": ("15.00", "Entertainment", Bucket.WANT),
    "netflix": ("15.49", "Entertainment", Bucket.WANT),
    "spotify": ("9.99", "Entertainment", Bucket.WANT),
}

_NON_WORD = re.compile(r"[^a-z0-9#\s]")


def normalize_item(text: str) -> str:
    return " ".join(_NON_WORD.sub("", text.lower()).split())


class PriceCatalog:
    def __init__(self, prices: dict[str, tuple[str, str, Bucket]] | None = None, threshold: float = 85.0):
        self.prices = prices if prices is not None else COMMON_PRICES
        self.threshold = threshold

    def _estimate(self, key: str, score: float) -> PriceEstimate:
        price, category, bucket = self.prices[key]
        return PriceEstimate(item=key, price=Decimal(price), category=category, bucket=bucket, score=score)

    def lookup(self, text: str) -> PriceEstimate | None:
        item = normalize_item(text)
        if not item or not self.prices:
            return None

        # 1. Exact match
        if item in self.prices:
            return self._estimate(item, 100.0)

        # 2. Fuzzy match; token sets let "venti at starbucks" hit "starbucks venti"
        result = process.extractOne(item, self.prices.keys(), scorer=fuzz.token_set_ratio)
        if result:
            key, score, _ = result
            if score >= self.threshold:
                return self._estimate(key, float(score))
        return None

    def bucket_for(self, text: str) -> Bucket | None:
        estimate = self.lookup(text)
        return estimate.bucket if estimate else None
