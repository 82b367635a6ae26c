from .probe import MoteProbe
from .controller import AdaptationConfig, SignalBasedAdaptation

__all__ = ["MoteProbe", "AdaptationConfig", "SignalBasedAdaptation"]
