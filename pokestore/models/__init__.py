from pokestore.models.card import (
    ENERGY_SUPERTYPE,
    POKEMON_SUPERTYPE,
    SUPERTYPES,
    TRAINER_SUPERTYPE,
    CanonicalCard,
    PriceRecord,
)
from pokestore.models.failure import (
    FailureKind,
    HttpStatusError,
    MissingCredentialError,
    ParseFailure,
    PipelineError,
    RateLimitedError,
    UploadError,
)
from pokestore.models.raw import RawApiCard, RawApiSet, RawHtmlCard
from pokestore.models.set import SetAlias, SetMapping, SetMappingEntry, SetRecord
from pokestore.models.species import Species

__all__ = [
    "CanonicalCard",
    "ENERGY_SUPERTYPE",
    "FailureKind",
    "HttpStatusError",
    "MissingCredentialError",
    "POKEMON_SUPERTYPE",
    "ParseFailure",
    "PipelineError",
    "PriceRecord",
    "RateLimitedError",
    "RawApiCard",
    "RawApiSet",
    "RawHtmlCard",
    "SUPERTYPES",
    "SetAlias",
    "SetMapping",
    "SetMappingEntry",
    "SetRecord",
    "Species",
    "TRAINER_SUPERTYPE",
    "UploadError",
]
