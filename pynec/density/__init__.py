"""
Log-density evaluation for Bayesian no-effect-concentration (NEC) models.

Constrained parameter blocks are reparameterised onto an unconstrained
vector; the evaluator turns that vector into priors, Jacobian terms and a
Gaussian or binomial-logit likelihood around a threshold concentration-
response curve.  Written over numpy, or over torch tensors when gradients
are needed by an external sampler or optimiser.
"""

from pynec.density._common import (
    EvalError,
    DimensionError,
    DomainError,
    MissingFieldError,
    ParameterLabel,
    ConstrainedValues,
)
from pynec.density._transforms import (
    Transform,
    Identity,
    LowerBound,
    Interval,
)
from pynec.density._priors import (
    Prior,
    Normal,
    StudentT,
    Gamma,
    Uniform,
)
from pynec.density._params import ParameterBlock, ParameterSet
from pynec.density._mean import nec_hormesis, nec_sigmoidal, step, VALID_CURVES
from pynec.density._likelihood import gaussian_loglik, binomial_logit_loglik, VALID_FAMILIES
from pynec.density._data import Dataset
from pynec.density._spec import BlockSpec, ModelSpec, build_spec, model_spec, VALID_MODELS
from pynec.density._evaluator import DensityEvaluator, nec_model

__all__ = [
    "EvalError",
    "DimensionError",
    "DomainError",
    "MissingFieldError",
    "ParameterLabel",
    "ConstrainedValues",
    "Transform",
    "Identity",
    "LowerBound",
    "Interval",
    "Prior",
    "Normal",
    "StudentT",
    "Gamma",
    "Uniform",
    "ParameterBlock",
    "ParameterSet",
    "nec_hormesis",
    "nec_sigmoidal",
    "step",
    "gaussian_loglik",
    "binomial_logit_loglik",
    "Dataset",
    "BlockSpec",
    "ModelSpec",
    "build_spec",
    "model_spec",
    "DensityEvaluator",
    "nec_model",
    "VALID_CURVES",
    "VALID_FAMILIES",
    "VALID_MODELS",
]
