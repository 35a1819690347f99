"""
smc-empirical: Empirical particle populations for sequential Monte Carlo.

A population is a set of weighted hypotheses approximating a distribution,
with operations to branch, reweight, resample and collapse it into a single
weighted sample of a parent computation.
"""

__version__ = "0.1.0"

# Weights
from .logweight import LogWeight, log_sum

# Errors
from .errors import (
    PopulationError,
    InvalidArgument,
    EmptyPopulation,
    DegenerateWeights
)

# Sampling and conditioning
from .sampler import Sampler
from .weighted import Weighted

# Core classes
from .particle import Particle
from .population import (
    Population,
    PopulationConfig,
    from_list,
    materialize,
    size,
    spawn,
    resample,
    resample_n,
    proper,
    collapse,
    evidence,
    transform
)

# Resampling
from .resampling import (
    resample_list,
    normalize_weights,
    multinomial_indices,
    systematic_indices,
    stratified_indices,
    residual_indices,
    get_resampling_scheme,
    RESAMPLING_SCHEMES
)

# Aggregation
from .aggregate import fold, all_satisfy

__all__ = [
    # Version
    "__version__",
    # Weights
    "LogWeight",
    "log_sum",
    # Errors
    "PopulationError",
    "InvalidArgument",
    "EmptyPopulation",
    "DegenerateWeights",
    # Sampling and conditioning
    "Sampler",
    "Weighted",
    # Core classes
    "Particle",
    "Population",
    "PopulationConfig",
    "from_list",
    "materialize",
    "size",
    "spawn",
    "resample",
    "resample_n",
    "proper",
    "collapse",
    "evidence",
    "transform",
    # Resampling
    "resample_list",
    "normalize_weights",
    "multinomial_indices",
    "systematic_indices",
    "stratified_indices",
    "residual_indices",
    "get_resampling_scheme",
    "RESAMPLING_SCHEMES",
    # Aggregation
    "fold",
    "all_satisfy",
]
