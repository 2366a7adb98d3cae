"""Raw row snapshot and secondary inputs consumed by the build."""

from chado_pipeline.raw.inputs import GoEcoMapping, load_domain_data, load_rnacentral_data
from chado_pipeline.raw.models import (
    RawAnnotation,
    RawChadoprop,
    RawExtensionPart,
    RawFeature,
    RawFeatureDbxref,
    RawFeatureLoc,
    RawFeatureProp,
    RawFeatureRelationship,
    RawFeatureSynonym,
    RawPublication,
    RawTerm,
    RawTermRelationship,
    RawTermSubset,
    RawTermSynonym,
    RawTermXref,
)
from chado_pipeline.raw.snapshot import RAW_TABLES, RawData

__all__ = [
    "GoEcoMapping",
    "load_domain_data",
    "load_rnacentral_data",
    "RawAnnotation",
    "RawChadoprop",
    "RawExtensionPart",
    "RawFeature",
    "RawFeatureDbxref",
    "RawFeatureLoc",
    "RawFeatureProp",
    "RawFeatureRelationship",
    "RawFeatureSynonym",
    "RawPublication",
    "RawTerm",
    "RawTermRelationship",
    "RawTermSubset",
    "RawTermSynonym",
    "RawTermXref",
    "RAW_TABLES",
    "RawData",
]
