"""patchforge - versioned artifact builds with incremental patch manifests."""

from .builder import BuildResult as BuildResult
from .builder import PatchBuilder as PatchBuilder
from .collector import HclCollector as HclCollector
from .collector import InclusionRule as InclusionRule
from .collector import StaticCollector as StaticCollector
from .compiler import CompileRequest as CompileRequest
from .compiler import ZipCompiler as ZipCompiler
from .context import BuildContext as BuildContext
from .context import ContextObject as ContextObject
from .differ import ChangeSet as ChangeSet
from .differ import diff_manifests as diff_manifests
from .errors import BuildError as BuildError
from .errors import CompilerError as CompilerError
from .errors import CyclicDependencyError as CyclicDependencyError
from .errors import ManifestReadError as ManifestReadError
from .errors import MissingContextError as MissingContextError
from .errors import ResolutionError as ResolutionError
from .graph import DependencyGraph as DependencyGraph
from .manifest import ArtifactRecord as ArtifactRecord
from .manifest import PatchManifest as PatchManifest
from .manifest import Variant as Variant
from .manifest import load_manifest as load_manifest
from .params import BuildParameters as BuildParameters
from .params import CompressOption as CompressOption
from .params import HashType as HashType
