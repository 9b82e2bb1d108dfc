import copy
import logging
from collections import OrderedDict

from django.conf import settings

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('id', 'price', 'quantity')


class Cart:
    """
    Session-local working set of menu items and quantities.

    Backed by any mutable mapping (a Django session in practice). There is
    at most one entry per menu item id. Every mutation writes the whole
    cart back to the store under ``CART_SESSION_KEY``.
    """

    def __init__(self, store, key=None):
        self.store = store
        self.key = key or getattr(settings, 'CART_SESSION_KEY', 'canteen_cart')
        self._entries = self._load()

    def _load(self):
        raw = self.store.get(self.key)
        if raw is None:
            return OrderedDict()
        try:
            return self._parse(raw)
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning('Discarding malformed cart in %s: %s', self.key, exc)
            return OrderedDict()

    @staticmethod
    def _parse(raw):
        if not isinstance(raw, list):
            raise ValueError('cart is not a list')
        entries = OrderedDict()
        for entry in raw:
            missing = [f for f in REQUIRED_FIELDS if f not in entry]
            if missing:
                raise KeyError(f"cart entry missing {', '.join(missing)}")
            item_id = int(entry['id'])
            quantity = int(entry['quantity'])
            price = int(entry['price'])
            if quantity <= 0 or price < 0:
                raise ValueError(f'bad quantity or price for item {item_id}')
            entries[item_id] = dict(entry, id=item_id, quantity=quantity, price=price)
        return entries

    def _save(self):
        self.store[self.key] = [dict(entry) for entry in self._entries.values()]
        # Django sessions only notice top-level assignment; mark it anyway
        # for stores that track modification
        if hasattr(self.store, 'modified'):
            self.store.modified = True

    def add(self, item):
        """
        Add one unit of a menu item

        Args:
            item: MenuItem instance or a dict of its catalog fields
        """
        entry = item.as_cart_entry() if hasattr(item, 'as_cart_entry') else dict(item)
        item_id = int(entry['id'])
        if item_id in self._entries:
            self._entries[item_id]['quantity'] += 1
        else:
            entry.pop('quantity', None)
            self._entries[item_id] = dict(entry, id=item_id, quantity=1)
        self._save()

    def remove(self, item_id):
        """Take one unit away; the entry goes when its quantity hits zero"""
        item_id = int(item_id)
        entry = self._entries.get(item_id)
        if entry is None:
            return
        if entry['quantity'] > 1:
            entry['quantity'] -= 1
        else:
            del self._entries[item_id]
        self._save()

    def update_quantity(self, item_id, quantity):
        item_id = int(item_id)
        if item_id not in self._entries:
            return
        if quantity <= 0:
            del self._entries[item_id]
        else:
            self._entries[item_id]['quantity'] = int(quantity)
        self._save()

    def clear(self):
        self._entries.clear()
        self._save()

    def total_items(self):
        return sum(entry['quantity'] for entry in self._entries.values())

    def total_price(self):
        return sum(entry['price'] * entry['quantity'] for entry in self._entries.values())

    def item_quantity(self, item_id):
        entry = self._entries.get(int(item_id))
        return entry['quantity'] if entry else 0

    def snapshot(self):
        """Deep copy of the cart lines, detached from the cart and the catalog"""
        return copy.deepcopy(list(self._entries.values()))

    @property
    def items(self):
        return self.snapshot()

    def __len__(self):
        return len(self._entries)

    def __bool__(self):
        return bool(self._entries)

    def __contains__(self, item_id):
        return int(item_id) in self._entries
