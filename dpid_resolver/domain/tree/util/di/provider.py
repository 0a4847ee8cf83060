from dishka import provide

from dpid_resolver.domain.tree.query.get_tree import GetCidTreeHandler, GetDpidTreeHandler
from dpid_resolver.domain.tree.service.tree import TreeService
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class TreeProvider(Provider):
    tree_service = provide(TreeService, scope=Scope.APP)

    # Query Handlers
    get_dpid_tree_handler = provide(GetDpidTreeHandler, scope=Scope.UOW)
    get_cid_tree_handler = provide(GetCidTreeHandler, scope=Scope.UOW)
