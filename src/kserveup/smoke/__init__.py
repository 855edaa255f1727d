"""Post-deployment inference checks."""

from kserveup.smoke.inference import DEFAULT_PROMPT, InferenceProbe, SmokeResult

__all__ = ["DEFAULT_PROMPT", "InferenceProbe", "SmokeResult"]
