"""App Booster -- scaffold Vite React or Next.js projects with tooling pre-configured.

The package turns a validated feature selection into a fully composed
frontend project: template bundles, a merged ``package.json``, installed
dependencies, git hooks and a generated README.

Quick usage::

    from appbooster import FeatureSet, Pipeline

    features = FeatureSet(project_type="vite", project_name="my-app")
    state = asyncio.run(Pipeline(features, Path("./my-app")).run())
"""

from appbooster.config import BoosterConfig, FeatureSet
from appbooster.pipeline import Pipeline, PipelineError

__version__ = "1.0.0"

__all__ = [
    "BoosterConfig",
    "FeatureSet",
    "Pipeline",
    "PipelineError",
    "__version__",
]
