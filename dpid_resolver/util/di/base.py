from dishka import Provider as DishkaProvider

from dpid_resolver.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for all resolver DI providers. Defaults to the UOW scope."""

    scope = Scope.UOW
