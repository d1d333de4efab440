import pytest

from Stripes.Quantities import Quantity, QuantityCache


class Counter():
    def __init__(self, value=0):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value + self.calls


def test_quantity_is_computed_once():
    counter = Counter()
    quantity = Quantity('q', counter)

    assert quantity.require() == 1
    assert quantity.require() == 1
    assert quantity.ensure_have() == 1
    assert counter.calls == 1


def test_unrequire_more_than_required_raises():
    quantity = Quantity('q', Counter())
    quantity.require()
    quantity.unrequire()

    with pytest.raises(ValueError):
        quantity.unrequire()


def test_purge_keeps_required_quantities():
    cache = QuantityCache()
    pinned = Counter()
    loose = Counter()
    cache.register('pinned', pinned)
    cache.register('loose', loose)

    cache.require('pinned')
    cache.ensure_have('loose')
    cache.purge()

    assert cache.is_computed('pinned')
    assert not cache.is_computed('loose')

    cache.ensure_have('loose')
    assert loose.calls == 2


def test_released_quantity_is_dropped_by_purge():
    cache = QuantityCache()
    cache.register('q', Counter())

    cache.require('q')
    cache.unrequire('q')
    cache.purge()

    assert not cache.is_computed('q')


def test_refresh_recomputes_only_pinned_quantities():
    cache = QuantityCache()
    pinned = Counter()
    loose = Counter()
    cache.register('pinned', pinned)
    cache.register('loose', loose)

    cache.require('pinned')
    cache.ensure_have('loose')
    cache.refresh()

    assert pinned.calls == 2
    assert cache['pinned'].value == 2
    assert loose.calls == 1
    assert not cache.is_computed('loose')


def test_dependencies_resolve_through_compute_functions():
    cache = QuantityCache()
    base = Counter(10)
    cache.register('base', base)
    cache.register('double', lambda: 2 * cache.ensure_have('base'))

    assert cache.require('double') == 22
    assert cache.is_computed('base')
    assert base.calls == 1


def test_register_twice_raises():
    cache = QuantityCache()
    cache.register('q', Counter())

    with pytest.raises(ValueError):
        cache.register('q', Counter())


def test_unknown_quantity_raises_key_error():
    cache = QuantityCache()

    assert 'missing' not in cache
    with pytest.raises(KeyError):
        cache.require('missing')
