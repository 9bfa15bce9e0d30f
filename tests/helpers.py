from lambdasim.models import InvocationRequest


def requests_from(pairs):
    """(function_type, arrival_time) pairs -> requests with ids in list order."""
    return [InvocationRequest(func, t, i) for i, (func, t) in enumerate(pairs)]
