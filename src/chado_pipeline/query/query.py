"""Top-level query: constraints plus output shaping."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from chado_pipeline.errors import QueryError
from chado_pipeline.model import APIGeneSummary, GeneQueryData
from chado_pipeline.query.index import GeneIndex
from chado_pipeline.query.nodes import QueryNode

_node_adapter = TypeAdapter(QueryNode)


class NucleotideOptions(BaseModel):
    include_introns: bool = False
    include_5_prime_utr: bool = False
    include_3_prime_utr: bool = False


class NucleotideSeqType(BaseModel):
    nucleotide: NucleotideOptions = Field(default_factory=NucleotideOptions)


SeqType = Union[Literal["none", "protein"], NucleotideSeqType]


def _summary_field(gene: APIGeneSummary, query_data: Optional[GeneQueryData], name: str) -> Any:
    protein = gene.transcripts[0].protein if gene.transcripts else None
    if name in ("gene_name", "name"):
        return gene.name
    if name in ("product", "uniprot_identifier", "feature_type"):
        return getattr(gene, name)
    if name in ("exon_count", "tm_domain_count"):
        return getattr(gene, name) if gene.transcripts else None
    if name == "protein_length":
        return protein.length if protein else None
    if name == "molecular_weight":
        return protein.molecular_weight if protein else None
    if name in ("chromosome_name", "start_pos", "end_pos"):
        return getattr(gene.location, name) if gene.location else None
    if name == "strand":
        return gene.location.strand.value if gene.location else None
    if name in GeneQueryData.model_fields and name != "gene_uniquename":
        value = getattr(query_data, name) if query_data else None
        return value.value if hasattr(value, "value") else value
    raise QueryError(f"illegal query: unknown output field {name}")


class QueryOutputOptions(BaseModel):
    sequence: SeqType = "none"
    field_names: list[str] = Field(default_factory=list)


class ResultRow(BaseModel):
    """One matching gene; requested fields are added as extra attributes."""

    model_config = ConfigDict(extra="allow")

    gene_uniquename: str
    sequence: Optional[str] = None


class Query(BaseModel):
    constraints: QueryNode
    output_options: QueryOutputOptions = Field(default_factory=QueryOutputOptions)

    @classmethod
    def from_constraints(cls, node_data: dict, **output_options) -> "Query":
        return cls(
            constraints=_node_adapter.validate_python(node_data),
            output_options=QueryOutputOptions(**output_options),
        )

    def exec(self, index: GeneIndex) -> list[ResultRow]:
        genes = self.constraints.exec(index)
        return [self._make_row(index, gene) for gene in genes]

    def _make_row(self, index: GeneIndex, gene_uniquename: str) -> ResultRow:
        summary = index.gene_summary(gene_uniquename)
        options = self.output_options
        fields = {}
        sequence = None

        if summary is not None:
            query_data = index.gene_query_data.get(gene_uniquename)
            for name in options.field_names:
                fields[name] = _summary_field(summary, query_data, name)
            sequence = self._sequence(summary)
        else:
            fields = {name: None for name in options.field_names}

        return ResultRow(gene_uniquename=gene_uniquename, sequence=sequence, **fields)

    def _sequence(self, gene: APIGeneSummary) -> Optional[str]:
        seq_type = self.output_options.sequence
        if seq_type == "none" or not gene.transcripts:
            return None
        transcript = gene.transcripts[0]
        if seq_type == "protein":
            return transcript.protein.sequence if transcript.protein else None
        options = seq_type.nucleotide
        return transcript.spliced_sequence(
            include_introns=options.include_introns,
            include_5_prime_utr=options.include_5_prime_utr,
            include_3_prime_utr=options.include_3_prime_utr,
        )


class QueryAPIResult(BaseModel):
    """Structured response of the query endpoint; never an HTTP failure."""

    status: Literal["ok", "error"]
    rows: list[ResultRow] = Field(default_factory=list)
    error: Optional[str] = None
