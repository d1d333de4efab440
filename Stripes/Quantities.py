class Quantity():
    '''
    A derived quantity of a mesh, computed lazily by its compute function.

    A quantity is computed at most once until it is cleared. Quantities
    pinned by require() survive clear() and are recomputed by refresh().
    '''
    def __init__(self, name, compute):
        self.name = name
        self.compute = compute
        self.value = None
        self.computed = False
        self.require_count = 0

    def ensure_have(self):
        if not self.computed:
            self.value = self.compute()
            self.computed = True
        return self.value

    def require(self):
        value = self.ensure_have()
        self.require_count += 1
        return value

    def unrequire(self):
        if self.require_count <= 0:
            raise ValueError(f'Quantity {self.name} was unrequired more often than required.')
        self.require_count -= 1

    def clear_if_not_required(self):
        if self.require_count == 0:
            self.value = None
            self.computed = False


class QuantityCache():
    '''
    Named collection of quantities with request/release semantics.
    Dependencies are resolved by the compute functions themselves,
    which call ensure_have() on what they need.
    '''
    def __init__(self):
        self.quantities = {}

    def register(self, name, compute):
        if name in self.quantities:
            raise ValueError(f'Quantity {name} is already registered.')
        self.quantities[name] = Quantity(name, compute)

    def __contains__(self, name):
        return name in self.quantities

    def __getitem__(self, name):
        return self.quantities[name]

    def ensure_have(self, name):
        return self.quantities[name].ensure_have()

    def require(self, name):
        return self.quantities[name].require()

    def unrequire(self, name):
        self.quantities[name].unrequire()

    def is_computed(self, name):
        return self.quantities[name].computed

    def purge(self):
        '''
        Drop every quantity nobody requires any more.
        '''
        for quantity in self.quantities.values():
            quantity.clear_if_not_required()

    def refresh(self):
        # Registration order follows dependency order, so pinned quantities
        # are recomputed after whatever they depend on
        for quantity in self.quantities.values():
            quantity.computed = False
        for quantity in self.quantities.values():
            if quantity.require_count > 0:
                quantity.ensure_have()
