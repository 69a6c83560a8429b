from .upstream import UpstreamRelay

__all__ = ["UpstreamRelay"]
