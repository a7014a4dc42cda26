from facecapture.algorithm.sampling.controller import AdaptiveSampler
from facecapture.algorithm.sampling.output import SamplingDecision

__all__ = ["AdaptiveSampler", "SamplingDecision"]
