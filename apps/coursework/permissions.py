from rest_framework import permissions
from rest_framework.exceptions import NotFound

from .access import Decision, actor_from_request, authorize


class GatePermission(permissions.BasePermission):
    """
    Runs the authorization gate before the view touches storage.

    Views declare `gate_actions` (HTTP method -> Action) and optionally
    `gate_lookup_kwarg`, the URL kwarg identifying the protected resource.
    HEAD is gated as GET. Any other method without a declared action is
    refused, except OPTIONS which reads no resource.
    """

    def has_permission(self, request, view):
        method = 'GET' if request.method == 'HEAD' else request.method
        action = getattr(view, 'gate_actions', {}).get(method)
        if action is None:
            return request.method == 'OPTIONS'

        lookup_kwarg = getattr(view, 'gate_lookup_kwarg', None)
        resource_id = view.kwargs.get(lookup_kwarg) if lookup_kwarg else None

        decision = authorize(actor_from_request(request), action, resource_id)
        if decision is Decision.NOT_FOUND:
            raise NotFound()
        return decision is Decision.ALLOW
