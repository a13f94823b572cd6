"""Congress vote clustering - group legislators whose voting records differ only by noise."""

__version__ = "0.1.0"

from congress_clusters.clusterer import AgglomerativeClusterer as AgglomerativeClusterer
from congress_clusters.clusterer import form_clusters as form_clusters
from congress_clusters.distance_index import ClusterDistanceIndex as ClusterDistanceIndex
from congress_clusters.matrix import DissimilarityMatrix as DissimilarityMatrix
from congress_clusters.models import ClusteringParams as ClusteringParams
from congress_clusters.models import ClusterResult as ClusterResult
from congress_clusters.models import Legislator as Legislator
