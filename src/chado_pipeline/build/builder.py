"""Build the denormalized, cross-linked data model from the raw snapshot."""

from collections import defaultdict
from typing import Iterable, Optional, Union

import structlog

from chado_pipeline.build.extension import ExtensionResolver
from chado_pipeline.build.features import (
    location_residues,
    make_location,
    make_protein,
    make_transcript,
)
from chado_pipeline.build.ontology import OntologyIndex
from chado_pipeline.build.summary import make_summary
from chado_pipeline.config.schema import (
    FEATURE_REL_CONFIGS,
    GENE_FEATURE_TYPES,
    GENE_NEIGHBOURHOOD_DISTANCE,
    HANDLED_FEATURE_TYPES,
    TRANSCRIPT_FEATURE_TYPES,
    TRANSCRIPT_PART_TYPES,
    CvConfig,
    PipelineConfig,
)
from chado_pipeline.errors import BuildError
from chado_pipeline.model import (
    AlleleShort,
    AnnotationBlock,
    AnnotationHost,
    APIAlleleDetails,
    APIGenotypeAnnotation,
    APIInteractor,
    ChromosomeDetails,
    ChromosomeLocation,
    DeletionViability,
    ExpressedAllele,
    FeatureShort,
    GeneDetails,
    GeneDomainData,
    GeneSubsetDetails,
    GenotypeDetails,
    InteractionAnnotation,
    InteractionType,
    OntAnnotationDetail,
    OntTermAnnotations,
    OrthologAnnotation,
    ParalogAnnotation,
    ReferenceDetails,
    RfamAnnotation,
    SynonymDetails,
    TargetOfAnnotation,
    TermAndRelation,
    TermDetails,
    TermSubsetDetails,
    TermSubsetElement,
    WebData,
    WithFromValue,
    host_annotation_key,
)
from chado_pipeline.raw.inputs import GoEcoMapping
from chado_pipeline.raw.models import RawFeature
from chado_pipeline.raw.snapshot import RawData

logger = structlog.get_logger()


class _Group:
    """Detail ids of one (host, cv, term, not) group."""

    __slots__ = ("detail_ids", "rel_names")

    def __init__(self):
        self.detail_ids: set[int] = set()
        self.rel_names: set[str] = set()


def _sorted_unique(items: Iterable) -> list:
    by_key = {item.sort_key(): item for item in items}
    return [by_key[key] for key in sorted(by_key)]


def _abbreviate_authors(authors: Optional[str]) -> Optional[str]:
    if not authors:
        return None
    names = [name.strip() for name in authors.split(",") if name.strip()]
    if len(names) > 1:
        return f"{names[0]} et al."
    return names[0] if names else None


class WebDataBuilder:
    """
    Single-pass builder from RawData to WebData.

    Any structural inconsistency in the raw rows (a reference to a missing
    term, feature or publication) raises BuildError and aborts the build;
    no partial result is returned.
    """

    def __init__(
        self,
        raw: RawData,
        config: PipelineConfig,
        domain_data: Optional[dict[str, GeneDomainData]] = None,
        rnacentral: Optional[dict[str, list[RfamAnnotation]]] = None,
        eco_mapping: Optional[GoEcoMapping] = None,
    ):
        self.raw = raw
        self.config = config
        self.domain_data = domain_data or {}
        self.rnacentral = rnacentral or {}
        self.eco_mapping = eco_mapping
        self.load_organism = config.load_organism()
        self.configured_taxonids = {organism.taxonid for organism in config.organisms}

        self.genes: dict[str, GeneDetails] = {}
        self.genotypes: dict[str, GenotypeDetails] = {}
        self.alleles: dict[str, AlleleShort] = {}
        self.terms: dict[str, TermDetails] = {}
        self.references: dict[str, ReferenceDetails] = {}
        self.chromosomes: dict[str, ChromosomeDetails] = {}
        self.other_features: dict[str, FeatureShort] = {}
        self.details: dict[int, OntAnnotationDetail] = {}
        self.detail_termid: dict[int, str] = {}
        self.detail_is_not: dict[int, bool] = {}

        # (host_type, host_id) -> cv_name -> (termid, is_not) -> _Group
        self.host_groups: dict[tuple[str, str], dict[str, dict[tuple[str, bool], _Group]]] = (
            defaultdict(dict)
        )
        self.term_genes: dict[str, set[str]] = defaultdict(set)
        self.term_genotypes: dict[str, set[str]] = defaultdict(set)
        self.term_single_allele_genotypes: dict[str, set[str]] = defaultdict(set)
        self.termid_genotype_annotation: dict[str, dict[str, APIGenotypeAnnotation]] = defaultdict(dict)
        self.gene_term_closure: dict[str, set[str]] = defaultdict(set)
        self.target_of: dict[str, list[TargetOfAnnotation]] = defaultdict(list)
        self.interactions: dict[tuple[str, str], list[InteractionAnnotation]] = defaultdict(list)
        self.orthologs: dict[tuple[str, str], list[OrthologAnnotation]] = defaultdict(list)
        self.paralogs: dict[tuple[str, str], list[ParalogAnnotation]] = defaultdict(list)
        self.interactors: dict[str, list[APIInteractor]] = defaultdict(list)
        self.term_subsets: dict[str, TermSubsetDetails] = {}
        self.gene_subsets: dict[str, GeneSubsetDetails] = {}

    def build(self) -> WebData:
        from chado_pipeline.build.rollups import assemble_web_data

        logger.info("build_start", database=self.config.database_name, **self.raw.row_counts())
        self._index_raw()
        self._build_terms()
        self._build_references()
        self._build_chromosomes()
        self._build_genes()
        self._build_alleles_and_genotypes()
        self._build_other_features()
        self._build_annotation_details()
        self._attach_annotations()
        self._add_feature_relationship_rollups()
        self._compute_counts()
        self._set_deletion_viability()
        self._set_gene_neighbourhoods()
        self._compute_subsets()
        self._finalize_hosts()

        web_data = assemble_web_data(self)
        logger.info(
            "build_complete",
            gene_count=len(self.genes),
            genotype_count=len(self.genotypes),
            term_count=len(self.terms),
            reference_count=len(self.references),
            annotation_count=len(self.details),
        )
        return web_data

    # raw indexing

    def _index_raw(self) -> None:
        raw = self.raw

        self.raw_terms = {}
        for term in raw.terms:
            if term.termid in self.raw_terms:
                raise BuildError(f"duplicate term id {term.termid}")
            self.raw_terms[term.termid] = term

        self.features: dict[str, RawFeature] = {}
        for feature in raw.features:
            if feature.uniquename in self.features:
                raise BuildError(f"duplicate feature uniquename {feature.uniquename}")
            self.features[feature.uniquename] = feature

        self.publications = {}
        for pub in raw.publications:
            self.publications[pub.uniquename] = pub

        self.feature_props = defaultdict(lambda: defaultdict(list))
        for prop in raw.feature_props:
            self._check_feature(prop.feature_uniquename, "feature property")
            if prop.value is not None:
                self.feature_props[prop.feature_uniquename][prop.prop_type].append(prop.value)

        self.feature_locs = {}
        for loc in raw.feature_locs:
            self._check_feature(loc.feature_uniquename, "feature location")
            self.feature_locs[loc.feature_uniquename] = loc

        self.rels_by_subject = defaultdict(list)
        self.rels_by_object = defaultdict(list)
        for rel in raw.feature_relationships:
            self._check_feature(rel.subject, f"{rel.rel_name} relationship")
            self._check_feature(rel.object, f"{rel.rel_name} relationship")
            self.rels_by_subject[rel.subject].append(rel)
            self.rels_by_object[rel.object].append(rel)

        self.feature_synonyms = defaultdict(list)
        for synonym in raw.feature_synonyms:
            self._check_feature(synonym.feature_uniquename, "synonym")
            self.feature_synonyms[synonym.feature_uniquename].append(synonym)

        self.feature_dbxrefs = defaultdict(set)
        for dbxref in raw.feature_dbxrefs:
            self._check_feature(dbxref.feature_uniquename, "dbxref")
            self.feature_dbxrefs[dbxref.feature_uniquename].add(dbxref.dbxref)

        self.extension_parts = defaultdict(list)
        for part in raw.extension_parts:
            self.extension_parts[part.annotation_id].append(part)

        self.ontology = OntologyIndex(
            self.raw_terms,
            raw.term_relationships,
            self.config.descendant_rel_names,
            self.config.has_part_cv_names,
        )
        self.extension_resolver = ExtensionResolver(self.config, self.ontology, set(self.features))

    def _check_feature(self, uniquename: str, context: str) -> None:
        if uniquename not in self.features:
            raise BuildError(f"{context} refers to missing feature {uniquename}")

    def _prop(self, uniquename: str, prop_type: str) -> Optional[str]:
        values = self.feature_props.get(uniquename, {}).get(prop_type)
        return values[0] if values else None

    def _subjects_of(self, object_uniquename: str, rel_name: str, feature_types) -> list[RawFeature]:
        found = {
            rel.subject: self.features[rel.subject]
            for rel in self.rels_by_object.get(object_uniquename, ())
            if rel.rel_name == rel_name and self.features[rel.subject].feature_type in feature_types
        }
        return [found[name] for name in sorted(found)]

    def _objects_of(self, subject_uniquename: str, rel_name: str, feature_types) -> list[RawFeature]:
        found = {
            rel.object: self.features[rel.object]
            for rel in self.rels_by_subject.get(subject_uniquename, ())
            if rel.rel_name == rel_name and self.features[rel.object].feature_type in feature_types
        }
        return [found[name] for name in sorted(found)]

    def _features_of_type(self, feature_types) -> list[RawFeature]:
        return sorted(
            (f for f in self.features.values() if f.feature_type in feature_types),
            key=lambda f: f.uniquename,
        )

    def _location(self, uniquename: str) -> Optional[ChromosomeLocation]:
        loc = self.feature_locs.get(uniquename)
        if loc is None:
            return None
        if loc.chromosome not in self.chromosomes:
            raise BuildError(f"location of {uniquename} refers to missing chromosome {loc.chromosome}")
        return make_location(loc)

    # short forms and entity pages

    def _build_terms(self) -> None:
        synonyms = defaultdict(list)
        for synonym in self.raw.term_synonyms:
            if synonym.termid not in self.raw_terms:
                raise BuildError(f"synonym refers to missing term {synonym.termid}")
            synonyms[synonym.termid].append(
                SynonymDetails(name=synonym.name, synonym_type=synonym.synonym_type)
            )

        xrefs = defaultdict(set)
        for xref in self.raw.term_xrefs:
            xrefs[xref.termid].add(xref.xref)

        self.raw_term_subsets = defaultdict(set)
        for member in self.raw.term_subsets:
            if member.termid not in self.raw_terms:
                raise BuildError(f"subset {member.subset_name} refers to missing term {member.termid}")
            self.raw_term_subsets[member.termid].add(member.subset_name)

        for termid in sorted(self.raw_terms):
            raw_term = self.raw_terms[termid]
            cv_config = self.config.cv_config_by_name(raw_term.cv_name)
            direct_ancestors = sorted(
                (
                    TermAndRelation(
                        termid=parent,
                        term_name=self.raw_terms[parent].name,
                        relation_name=rel_name,
                    )
                    for parent, rel_name in self.ontology.parents.get(termid, ())
                ),
                key=lambda t: (t.relation_name, t.term_name, t.termid),
            )
            self.terms[termid] = TermDetails(
                termid=termid,
                name=raw_term.name,
                cv_name=raw_term.cv_name,
                annotation_feature_type=cv_config.feature_type,
                definition=raw_term.definition,
                is_obsolete=raw_term.is_obsolete,
                synonyms=sorted(synonyms[termid], key=lambda s: (s.synonym_type, s.name)),
                direct_ancestors=direct_ancestors,
                interesting_parents=self.ontology.interesting_parents(
                    termid, self.config.interesting_parents
                ),
                in_subsets=sorted(self.raw_term_subsets.get(termid, ())),
                xrefs=sorted(xrefs.get(termid, ())),
            )

        logger.info("build_terms_complete", term_count=len(self.terms))

    def _build_references(self) -> None:
        for uniquename in sorted(self.publications):
            pub = self.publications[uniquename]
            self.references[uniquename] = ReferenceDetails(
                uniquename=uniquename,
                title=pub.title,
                citation=pub.citation,
                authors=pub.authors,
                authors_abbrev=_abbreviate_authors(pub.authors),
                abstract=pub.abstract,
                pubmed_publication_date=pub.publication_date,
                publication_year=pub.publication_year,
                canto_triage_status=pub.canto_triage_status,
                canto_curator_role=pub.canto_curator_role,
                canto_curator_name=pub.canto_curator_name,
                canto_approved_date=pub.canto_approved_date,
                canto_session_submitted_date=pub.canto_session_submitted_date,
                canto_added_date=pub.canto_added_date,
                approved_date=pub.canto_approved_date,
            )

    def _build_chromosomes(self) -> None:
        for feature in self._features_of_type(["chromosome"]):
            ena_identifier = None
            for dbxref in sorted(self.feature_dbxrefs.get(feature.uniquename, ())):
                if dbxref.startswith("ENA:"):
                    ena_identifier = dbxref.split(":", 1)[1]
                    break
            self.chromosomes[feature.uniquename] = ChromosomeDetails(
                name=feature.uniquename,
                taxonid=feature.taxonid,
                residues=feature.residues or "",
                ena_identifier=ena_identifier,
            )

    def _build_genes(self) -> None:
        self.transcript_gene: dict[str, str] = {}
        dbnames_to_filter = set(self.config.interpro.dbnames_to_filter)

        for feature in self._features_of_type(GENE_FEATURE_TYPES):
            if feature.taxonid not in self.configured_taxonids:
                continue
            uniquename = feature.uniquename

            transcripts = []
            for transcript in self._subjects_of(uniquename, "part_of", TRANSCRIPT_FEATURE_TYPES):
                self.transcript_gene[transcript.uniquename] = uniquename
                transcript_loc = self.feature_locs.get(transcript.uniquename)
                if transcript_loc is None:
                    logger.warning("transcript_without_location", transcript=transcript.uniquename)
                    continue
                chromosome_residues = self._location_chromosome(transcript.uniquename).residues
                raw_parts = [
                    (part, self.feature_locs[part.uniquename])
                    for part in self._subjects_of(transcript.uniquename, "part_of", TRANSCRIPT_PART_TYPES)
                    if part.uniquename in self.feature_locs
                ]
                polypeptides = self._subjects_of(transcript.uniquename, "derives_from", ["polypeptide"])
                protein = None
                if polypeptides:
                    protein = make_protein(
                        polypeptides[0], self.feature_props.get(polypeptides[0].uniquename, {})
                    )
                transcripts.append(
                    make_transcript(transcript, transcript_loc, raw_parts, protein, chromosome_residues)
                )

            domains = self.domain_data.get(uniquename, GeneDomainData())
            self.genes[uniquename] = GeneDetails(
                uniquename=uniquename,
                name=feature.name,
                taxonid=feature.taxonid,
                product=self._prop(uniquename, "product"),
                feature_type=feature.feature_type,
                uniprot_identifier=self._prop(uniquename, "uniprot_identifier"),
                characterisation_status=self._prop(uniquename, "characterisation_status"),
                taxonomic_distribution=self._prop(uniquename, "taxonomic_distribution"),
                location=self._location(uniquename),
                transcripts=transcripts,
                synonyms=sorted(
                    (
                        SynonymDetails(name=s.name, synonym_type=s.synonym_type)
                        for s in self.feature_synonyms.get(uniquename, ())
                        if s.is_current
                    ),
                    key=lambda s: (s.synonym_type, s.name),
                ),
                dbxrefs=sorted(self.feature_dbxrefs.get(uniquename, ())),
                interpro_matches=sorted(
                    (m for m in domains.interpro_matches if m.dbname not in dbnames_to_filter),
                    key=lambda m: (m.dbname, m.id),
                ),
                tm_domain_coords=sorted(domains.tm_domain_coords, key=lambda c: (c.start, c.end)),
                rfam_annotations=sorted(self.rnacentral.get(uniquename, []), key=lambda r: r.rfam_id),
            )

        logger.info("build_genes_complete", gene_count=len(self.genes))

    def _location_chromosome(self, uniquename: str) -> ChromosomeDetails:
        location = self._location(uniquename)
        return self.chromosomes[location.chromosome_name]

    def _build_alleles_and_genotypes(self) -> None:
        for allele in self._features_of_type(["allele"]):
            genes = self._objects_of(allele.uniquename, "instance_of", GENE_FEATURE_TYPES)
            if len(genes) != 1:
                raise BuildError(
                    f"allele {allele.uniquename} must belong to exactly one gene, found {len(genes)}"
                )
            self.alleles[allele.uniquename] = AlleleShort(
                uniquename=allele.uniquename,
                name=allele.name,
                allele_type=self._prop(allele.uniquename, "allele_type") or "unknown",
                description=self._prop(allele.uniquename, "description"),
                gene_uniquename=genes[0].uniquename,
            )

        for genotype in self._features_of_type(["genotype"]):
            expressed = sorted(
                (
                    ExpressedAllele(expression=rel.expression, allele_uniquename=rel.subject)
                    for rel in self.rels_by_object.get(genotype.uniquename, ())
                    if rel.rel_name == "part_of" and rel.subject in self.alleles
                ),
                key=lambda e: e.allele_uniquename,
            )
            if not expressed:
                raise BuildError(f"genotype {genotype.uniquename} has no alleles")
            display_uniquename = " ".join(
                sorted(self.alleles[e.allele_uniquename].display_name() for e in expressed)
            )
            self.genotypes[genotype.uniquename] = GenotypeDetails(
                uniquename=genotype.uniquename,
                display_uniquename=display_uniquename,
                name=genotype.name,
                taxonid=genotype.taxonid,
                background=self._prop(genotype.uniquename, "genotype_background"),
                expressed_alleles=expressed,
            )

    def _build_other_features(self) -> None:
        for feature in sorted(self.features.values(), key=lambda f: f.uniquename):
            if feature.feature_type in HANDLED_FEATURE_TYPES:
                continue
            location = self._location(feature.uniquename)
            if location is None:
                continue
            chromosome = self.chromosomes[location.chromosome_name]
            self.other_features[feature.uniquename] = FeatureShort(
                feature_type=feature.feature_type,
                uniquename=feature.uniquename,
                name=feature.name,
                location=location,
                residues=location_residues(location, chromosome.residues),
            )

    # annotations

    def _genes_of_feature(self, feature: RawFeature) -> tuple[list[str], Optional[str]]:
        """Genes (and genotype, if any) carrying an annotation made to feature."""
        feature_type = feature.feature_type
        uniquename = feature.uniquename

        if feature_type in GENE_FEATURE_TYPES:
            return [uniquename], None
        if feature_type == "genotype":
            genotype = self.genotypes[uniquename]
            genes = {
                self.alleles[e.allele_uniquename].gene_uniquename
                for e in genotype.expressed_alleles
            }
            return sorted(genes), uniquename
        if feature_type == "allele":
            return [self.alleles[uniquename].gene_uniquename], None

        if feature_type in TRANSCRIPT_FEATURE_TYPES:
            genes = self._objects_of(uniquename, "part_of", GENE_FEATURE_TYPES)
        elif feature_type == "polypeptide":
            genes = [
                gene
                for transcript in self._objects_of(uniquename, "derives_from", TRANSCRIPT_FEATURE_TYPES)
                for gene in self._objects_of(transcript.uniquename, "part_of", GENE_FEATURE_TYPES)
            ]
        else:
            raise BuildError(f"annotation to unsupported feature type {feature_type}: {uniquename}")

        if not genes:
            raise BuildError(f"can't find the gene of annotated feature {uniquename}")
        return sorted({gene.uniquename for gene in genes}), None

    def _with_from_values(self, values: list[str]) -> list[WithFromValue]:
        result = {}
        for value in values:
            feature = self.features.get(value)
            if feature is not None and feature.feature_type in GENE_FEATURE_TYPES:
                item = WithFromValue(type="gene", value=value)
            elif value in self.raw_terms:
                item = WithFromValue(type="term", value=value)
            else:
                item = WithFromValue(type="identifier", value=value)
            result[item.sort_key()] = item
        return [result[key] for key in sorted(result)]

    def _build_annotation_details(self) -> None:
        for raw_annotation in sorted(self.raw.annotations, key=lambda a: a.annotation_id):
            annotation_id = raw_annotation.annotation_id
            if annotation_id in self.details:
                raise BuildError(f"duplicate annotation id {annotation_id}")
            if raw_annotation.termid not in self.raw_terms:
                raise BuildError(
                    f"annotation {annotation_id} refers to missing term {raw_annotation.termid}"
                )
            feature = self.features.get(raw_annotation.feature_uniquename)
            if feature is None:
                raise BuildError(
                    f"annotation {annotation_id} refers to missing feature "
                    f"{raw_annotation.feature_uniquename}"
                )
            if raw_annotation.reference and raw_annotation.reference not in self.references:
                raise BuildError(
                    f"annotation {annotation_id} refers to missing reference "
                    f"{raw_annotation.reference}"
                )
            for condition in raw_annotation.conditions:
                if condition not in self.raw_terms:
                    raise BuildError(
                        f"annotation {annotation_id} refers to missing condition term {condition}"
                    )

            genes, genotype_uniquename = self._genes_of_feature(feature)
            genotype_background = None
            if genotype_uniquename is not None:
                genotype_background = self.genotypes[genotype_uniquename].background

            eco_evidence = None
            if self.eco_mapping is not None and raw_annotation.evidence:
                eco_evidence = self.eco_mapping.lookup(raw_annotation.evidence, raw_annotation.reference)

            self.details[annotation_id] = OntAnnotationDetail(
                id=annotation_id,
                genes=genes,
                reference=raw_annotation.reference,
                evidence=raw_annotation.evidence,
                eco_evidence=eco_evidence,
                extension=self.extension_resolver.resolve(
                    self.extension_parts.get(annotation_id, []), raw_annotation.termid
                ),
                withs=self._with_from_values(raw_annotation.withs),
                froms=self._with_from_values(raw_annotation.froms),
                residue=raw_annotation.residue,
                qualifiers=sorted(set(raw_annotation.qualifiers)),
                gene_ex_props=raw_annotation.gene_ex_props,
                genotype=genotype_uniquename,
                genotype_background=genotype_background,
                conditions=sorted(set(raw_annotation.conditions)),
                assigned_by=raw_annotation.assigned_by,
                throughput=raw_annotation.throughput,
                date=raw_annotation.date,
            )
            self.detail_termid[annotation_id] = raw_annotation.termid
            self.detail_is_not[annotation_id] = raw_annotation.is_not

        logger.info("build_annotation_details_complete", annotation_count=len(self.details))

    def _attach(
        self,
        host_key: tuple[str, str],
        cv_name: str,
        termid: str,
        is_not: bool,
        detail_id: int,
        rel_names: Iterable[str] = (),
    ) -> None:
        groups = self.host_groups[host_key].setdefault(cv_name, {})
        group = groups.get((termid, is_not))
        if group is None:
            group = groups[(termid, is_not)] = _Group()
        group.detail_ids.add(detail_id)
        group.rel_names.update(rel_names)

    @staticmethod
    def _genotype_on_gene_page(genotype: GenotypeDetails, cv_config: CvConfig) -> bool:
        is_multi = len(genotype.expressed_alleles) > 1
        if cv_config.single_or_multi_allele == "single":
            return not is_multi
        if cv_config.single_or_multi_allele == "multi":
            return is_multi
        return True

    def _api_genotype_annotation(self, genotype: GenotypeDetails) -> APIGenotypeAnnotation:
        return APIGenotypeAnnotation(
            is_multi=len(genotype.expressed_alleles) > 1,
            alleles=[
                APIAlleleDetails(
                    gene=self.alleles[e.allele_uniquename].gene_uniquename,
                    allele_type=self.alleles[e.allele_uniquename].allele_type,
                    expression=e.expression,
                )
                for e in genotype.expressed_alleles
            ],
        )

    def _attach_annotations(self) -> None:
        """
        Index every detail under its gene, genotype, reference and term hosts.

        Term hosts receive the detail for the annotated term and for every
        ancestor reachable through the configured relations. NOT annotations
        are never propagated to ancestors.
        """
        for detail_id in sorted(self.details):
            detail = self.details[detail_id]
            termid = self.detail_termid[detail_id]
            is_not = self.detail_is_not[detail_id]
            cv_name = self.terms[termid].cv_name
            cv_config = self.config.cv_config_by_name(cv_name)
            genotype = self.genotypes.get(detail.genotype) if detail.genotype else None

            if genotype is None or self._genotype_on_gene_page(genotype, cv_config):
                for gene in detail.genes:
                    if gene in self.genes:
                        self._attach(("gene", gene), cv_name, termid, is_not, detail_id)
            if genotype is not None:
                self._attach(("genotype", genotype.uniquename), cv_name, termid, is_not, detail_id)
            if detail.reference:
                self._attach(("reference", detail.reference), cv_name, termid, is_not, detail_id)
            self._attach(("term", termid), cv_name, termid, is_not, detail_id)

            if is_not:
                continue

            ancestors = self.ontology.ancestors(termid)
            for ancestor, rel_names in ancestors.items():
                self._attach(("term", ancestor), cv_name, termid, False, detail_id, rel_names)

            for closure_termid in [termid, *ancestors]:
                self.term_genes[closure_termid].update(detail.genes)
                for gene in detail.genes:
                    self.gene_term_closure[gene].add(closure_termid)
                if genotype is not None:
                    self.term_genotypes[closure_termid].add(genotype.uniquename)
                    if len(genotype.expressed_alleles) == 1:
                        self.term_single_allele_genotypes[closure_termid].add(genotype.uniquename)
                    self.termid_genotype_annotation[closure_termid][genotype.uniquename] = (
                        self._api_genotype_annotation(genotype)
                    )

            self._add_target_of(detail, termid, cv_name)

    def _add_target_of(self, detail: OntAnnotationDetail, termid: str, cv_name: str) -> None:
        for part in detail.extension:
            reciprocal = self.extension_resolver.reciprocal_display_name(part.rel_type_name, termid)
            if reciprocal is None:
                continue
            for target in part.gene_uniquenames():
                if target in self.genes:
                    self.target_of[target].append(
                        TargetOfAnnotation(
                            ontology_name=cv_name,
                            ext_rel_display_name=reciprocal,
                            genes=detail.genes,
                            genotype_uniquename=detail.genotype,
                            reference_uniquename=detail.reference,
                        )
                    )

    def _add_feature_relationship_rollups(self) -> None:
        for rel in self.raw.feature_relationships:
            kind = FEATURE_REL_CONFIGS.get(rel.rel_name)
            if kind is None:
                continue
            if rel.reference and rel.reference not in self.references:
                raise BuildError(
                    f"{rel.rel_name} relationship {rel.subject} {rel.object} refers to "
                    f"missing reference {rel.reference}"
                )
            subject = self.features[rel.subject]
            obj = self.features[rel.object]

            if kind == "interaction":
                interaction_type = (
                    InteractionType.PHYSICAL
                    if rel.rel_name == "interacts_physically"
                    else InteractionType.GENETIC
                )
                annotation = InteractionAnnotation(
                    gene_uniquename=subject.uniquename,
                    interactor_uniquename=obj.uniquename,
                    interaction_type=interaction_type,
                    evidence=rel.evidence,
                    reference_uniquename=rel.reference,
                    throughput=rel.throughput,
                )
                for host_key in {("gene", subject.uniquename), ("gene", obj.uniquename)}:
                    self.interactions[host_key].append(annotation)
                if rel.reference:
                    self.interactions[("reference", rel.reference)].append(annotation)
                self.interactors[subject.uniquename].append(
                    APIInteractor(interaction_type=interaction_type, interactor_uniquename=obj.uniquename)
                )
                self.interactors[obj.uniquename].append(
                    APIInteractor(interaction_type=interaction_type, interactor_uniquename=subject.uniquename)
                )
            elif kind == "ortholog":
                forward = OrthologAnnotation(
                    gene_uniquename=subject.uniquename,
                    ortholog_uniquename=obj.uniquename,
                    ortholog_taxonid=obj.taxonid,
                    evidence=rel.evidence,
                    reference_uniquename=rel.reference,
                )
                self.orthologs[("gene", subject.uniquename)].append(forward)
                self.orthologs[("gene", obj.uniquename)].append(
                    OrthologAnnotation(
                        gene_uniquename=obj.uniquename,
                        ortholog_uniquename=subject.uniquename,
                        ortholog_taxonid=subject.taxonid,
                        evidence=rel.evidence,
                        reference_uniquename=rel.reference,
                    )
                )
                if rel.reference:
                    self.orthologs[("reference", rel.reference)].append(forward)
            else:
                annotation = ParalogAnnotation(
                    gene_uniquename=subject.uniquename,
                    paralog_uniquename=obj.uniquename,
                    evidence=rel.evidence,
                    reference_uniquename=rel.reference,
                )
                self.paralogs[("gene", subject.uniquename)].append(annotation)
                self.paralogs[("gene", obj.uniquename)].append(
                    ParalogAnnotation(
                        gene_uniquename=obj.uniquename,
                        paralog_uniquename=subject.uniquename,
                        evidence=rel.evidence,
                        reference_uniquename=rel.reference,
                    )
                )
                if rel.reference:
                    self.paralogs[("reference", rel.reference)].append(annotation)

    # rollups

    def _host_detail_ids(self, host_key: tuple[str, str], include_not: bool = False) -> set[int]:
        return {
            detail_id
            for groups in self.host_groups.get(host_key, {}).values()
            for (_, is_not), group in groups.items()
            if include_not or not is_not
            for detail_id in group.detail_ids
        }

    def _compute_counts(self) -> None:
        for termid, term in self.terms.items():
            genes = sorted(self.term_genes.get(termid, ()))
            term.genes_annotated_with = genes
            term.gene_count = len(genes)
            term.genotype_count = len(self.term_genotypes.get(termid, ()))
            term.single_allele_genotype_uniquenames = sorted(
                self.term_single_allele_genotypes.get(termid, ())
            )

        for uniquename, reference in self.references.items():
            genes = set()
            genotypes = set()
            for detail_id in self._host_detail_ids(("reference", uniquename)):
                detail = self.details[detail_id]
                genes.update(detail.genes)
                if detail.genotype:
                    genotypes.add(detail.genotype)
            reference.gene_count = len(genes)
            reference.genotype_count = len(genotypes)

    def _set_deletion_viability(self) -> None:
        viability_terms = self.config.viability_terms
        if viability_terms is None:
            return

        seen: dict[str, set[str]] = defaultdict(set)
        for detail_id, detail in self.details.items():
            if self.detail_is_not[detail_id] or detail.genotype is None:
                continue
            genotype = self.genotypes[detail.genotype]
            if len(genotype.expressed_alleles) != 1:
                continue
            allele = self.alleles[genotype.expressed_alleles[0].allele_uniquename]
            if allele.allele_type != "deletion":
                continue
            termid = self.detail_termid[detail_id]
            if self.ontology.is_self_or_descendant_of(termid, viability_terms.viable):
                seen[allele.gene_uniquename].add("viable")
            if self.ontology.is_self_or_descendant_of(termid, viability_terms.inviable):
                seen[allele.gene_uniquename].add("inviable")

        for gene_uniquename, flags in seen.items():
            gene = self.genes.get(gene_uniquename)
            if gene is None:
                continue
            if flags == {"viable", "inviable"}:
                gene.deletion_viability = DeletionViability.DEPENDS_ON_CONDITIONS
            elif "viable" in flags:
                gene.deletion_viability = DeletionViability.VIABLE
            else:
                gene.deletion_viability = DeletionViability.INVIABLE

    def _set_gene_neighbourhoods(self) -> None:
        by_chromosome: dict[str, list[GeneDetails]] = defaultdict(list)
        for gene in self.genes.values():
            if gene.location is not None:
                by_chromosome[gene.location.chromosome_name].append(gene)

        distance = GENE_NEIGHBOURHOOD_DISTANCE
        for chromosome_name, genes in by_chromosome.items():
            genes.sort(key=lambda g: (g.location.start_pos, g.location.end_pos, g.uniquename))
            self.chromosomes[chromosome_name].gene_uniquenames = [g.uniquename for g in genes]
            for i, gene in enumerate(genes):
                gene.gene_neighbourhood = [
                    g.to_short() for g in genes[max(0, i - distance):i + distance + 1]
                ]

    def _compute_subsets(self) -> None:
        seeds_by_subset: dict[str, list[str]] = defaultdict(list)
        for termid in sorted(self.raw_term_subsets):
            for subset_name in self.raw_term_subsets[termid]:
                seeds_by_subset[subset_name].append(termid)

        slim_seeds: dict[str, set[str]] = {}
        for slim_name, slim in sorted(self.config.all_slims().items()):
            for term_and_name in slim.terms:
                if term_and_name.termid not in self.terms:
                    raise BuildError(f"slim {slim_name} refers to missing term {term_and_name.termid}")
            slim_seeds[slim_name] = {t.termid for t in slim.terms}
            seeds_by_subset[slim_name] = [t.termid for t in slim.terms]

        for subset_name in sorted(seeds_by_subset):
            elements = []
            all_genes = set()
            for termid in seeds_by_subset[subset_name]:
                term = self.terms[termid]
                all_genes.update(term.genes_annotated_with)
                elements.append(TermSubsetElement(termid=termid, name=term.name, gene_count=term.gene_count))
            self.term_subsets[subset_name] = TermSubsetDetails(
                name=subset_name,
                total_gene_count=len(all_genes),
                elements=sorted(elements, key=lambda e: (e.name, e.termid)),
            )

        for termid, term in self.terms.items():
            closure = set(self.ontology.self_and_ancestors(termid))
            in_slims = {name for name, seeds in slim_seeds.items() if seeds & closure}
            term.in_subsets = sorted(set(term.in_subsets) | in_slims)

        all_seeds = sorted({termid for seeds in seeds_by_subset.values() for termid in seeds})
        gene_seeds: dict[str, set[str]] = defaultdict(set)
        for termid in all_seeds:
            for gene_uniquename in self.terms[termid].genes_annotated_with:
                gene_seeds[gene_uniquename].add(termid)
        for gene_uniquename, gene in self.genes.items():
            gene.subset_termids = sorted(gene_seeds.get(gene_uniquename, ()))

        gene_subsets: dict[str, set[str]] = defaultdict(set)
        for gene in self.genes.values():
            if gene.taxonid != self.load_organism.taxonid:
                continue
            gene_subsets[f"feature_type:{gene_feature_type(gene)}"].add(gene.uniquename)
            if gene.characterisation_status:
                gene_subsets[f"characterisation_status:{gene.characterisation_status}"].add(gene.uniquename)
            for match in gene.interpro_matches:
                if match.interpro_id:
                    gene_subsets[f"interpro:{match.interpro_id}"].add(gene.uniquename)
            gene_subsets[f"deletion_viability:{gene.deletion_viability.value}"].add(gene.uniquename)

        self.gene_subsets = {
            name: GeneSubsetDetails(
                name=name,
                display_name=name.split(":", 1)[1],
                elements=sorted(gene_subsets[name]),
            )
            for name in sorted(gene_subsets)
        }
        logger.info(
            "build_subsets_complete",
            term_subset_count=len(self.term_subsets),
            gene_subset_count=len(self.gene_subsets),
        )

    # annotation blocks

    def _gene_order(self, uniquename: str) -> tuple:
        gene = self.gene_shorts.get(uniquename)
        return gene.sort_key() if gene is not None else (1, "", uniquename)

    def _sort_detail_ids(self, detail_ids: Iterable[int], cv_config: CvConfig) -> list[int]:
        if not cv_config.sort_details_by:
            return sorted(detail_ids)

        def sort_field(detail: OntAnnotationDetail, field_name: str) -> str:
            if field_name == "gene":
                return ",".join(
                    self.genes[g].to_short().display_name() if g in self.genes else g
                    for g in detail.genes
                )
            if field_name == "genotype":
                if detail.genotype is None:
                    return ""
                return self.genotypes[detail.genotype].display_uniquename
            return getattr(detail, field_name) or ""

        return sorted(
            detail_ids,
            key=lambda i: tuple(sort_field(self.details[i], f) for f in cv_config.sort_details_by) + (i,),
        )

    def _make_block(
        self,
        host: AnnotationHost,
        extra_genes: Iterable[str] = (),
        extra_references: Iterable[str] = (),
    ) -> AnnotationBlock:
        host_key = host_annotation_key(host)
        host_type = host.host_type
        cv_annotations = {}
        for cv_name in sorted(self.host_groups.get(host_key, {})):
            groups = self.host_groups[host_key][cv_name]
            cv_config = self.config.cv_config_by_name(cv_name)
            term_annotations = []
            group_keys = sorted(groups, key=lambda k: (self.term_shorts[k[0]].sort_key(), k[1]))
            for termid, is_not in group_keys:
                group = groups[(termid, is_not)]
                detail_ids = self._sort_detail_ids(group.detail_ids, cv_config)
                summary = None
                if not is_not:
                    summary = make_summary(
                        [self.details[i] for i in detail_ids],
                        cv_config,
                        host_type,
                        self.extension_resolver.sort_parts,
                        self._gene_order,
                    )
                term_annotations.append(
                    OntTermAnnotations(
                        term=termid,
                        is_not=is_not,
                        rel_names=sorted(group.rel_names),
                        annotations=detail_ids,
                        summary=summary,
                    )
                )
            cv_annotations[cv_name] = term_annotations

        detail_ids = sorted(self._host_detail_ids(host_key, include_not=True))
        gene_refs = set(extra_genes)
        genotype_refs = set()
        term_refs = set()
        reference_refs = set(extra_references)

        for detail_id in detail_ids:
            detail = self.details[detail_id]
            term_refs.add(self.detail_termid[detail_id])
            term_refs.update(detail.conditions)
            gene_refs.update(detail.genes)
            for part in detail.extension:
                gene_refs.update(part.gene_uniquenames())
                term_refs.update(part.termids())
            for value in detail.withs + detail.froms:
                if value.type == "gene":
                    gene_refs.add(value.value)
                elif value.type == "term":
                    term_refs.add(value.value)
            if detail.genotype:
                genotype_refs.add(detail.genotype)
            if detail.reference:
                reference_refs.add(detail.reference)

        allele_refs = {
            e.allele_uniquename
            for genotype_uniquename in genotype_refs
            for e in self.genotypes[genotype_uniquename].expressed_alleles
        }
        gene_refs.update(self.alleles[a].gene_uniquename for a in allele_refs)
        reference_refs.discard(None)

        return AnnotationBlock(
            cv_annotations=cv_annotations,
            annotation_details={i: self.details[i] for i in detail_ids},
            genes_by_uniquename={g: self.gene_shorts.get(g) for g in sorted(gene_refs)},
            genotypes_by_uniquename={g: self.genotype_shorts[g] for g in sorted(genotype_refs)},
            alleles_by_uniquename={a: self.alleles[a] for a in sorted(allele_refs)},
            terms_by_termid={t: self.term_shorts[t] for t in sorted(term_refs)},
            references_by_uniquename={r: self.reference_shorts.get(r) for r in sorted(reference_refs)},
        )

    def _finalize_hosts(self) -> None:
        self.term_shorts = {termid: term.to_short() for termid, term in sorted(self.terms.items())}
        self.reference_shorts = {u: ref.to_short() for u, ref in sorted(self.references.items())}
        self.gene_shorts = {u: gene.to_short() for u, gene in sorted(self.genes.items())}
        self.genotype_shorts = {u: g.to_short() for u, g in sorted(self.genotypes.items())}

        for uniquename, gene in self.genes.items():
            host_key = host_annotation_key(gene)
            interactions = _sorted_unique(self.interactions.get(host_key, ()))
            gene.physical_interactions = [
                i for i in interactions if i.interaction_type == InteractionType.PHYSICAL
            ]
            gene.genetic_interactions = [
                i for i in interactions if i.interaction_type == InteractionType.GENETIC
            ]
            gene.ortholog_annotations = _sorted_unique(self.orthologs.get(host_key, ()))
            gene.paralog_annotations = _sorted_unique(self.paralogs.get(host_key, ()))
            gene.target_of_annotations = _sorted_unique(self.target_of.get(uniquename, ()))
            gene.annotations = self._make_block(
                gene,
                extra_genes=self._rollup_genes(gene) | {s.uniquename for s in gene.gene_neighbourhood},
                extra_references=self._rollup_references(gene),
            )

        for genotype in self.genotypes.values():
            genotype.annotations = self._make_block(genotype)

        for term in self.terms.values():
            term.annotations = self._make_block(term)

        for uniquename, reference in self.references.items():
            host_key = host_annotation_key(reference)
            interactions = _sorted_unique(self.interactions.get(host_key, ()))
            reference.physical_interactions = [
                i for i in interactions if i.interaction_type == InteractionType.PHYSICAL
            ]
            reference.genetic_interactions = [
                i for i in interactions if i.interaction_type == InteractionType.GENETIC
            ]
            reference.ortholog_annotations = _sorted_unique(self.orthologs.get(host_key, ()))
            reference.paralog_annotations = _sorted_unique(self.paralogs.get(host_key, ()))
            reference.annotations = self._make_block(
                reference,
                extra_genes=self._rollup_genes(reference),
                extra_references=[uniquename],
            )

    @staticmethod
    def _rollup_genes(host: Union[GeneDetails, ReferenceDetails]) -> set[str]:
        genes = set()
        for interaction in host.physical_interactions + host.genetic_interactions:
            genes.update((interaction.gene_uniquename, interaction.interactor_uniquename))
        for ortholog in host.ortholog_annotations:
            genes.update((ortholog.gene_uniquename, ortholog.ortholog_uniquename))
        for paralog in host.paralog_annotations:
            genes.update((paralog.gene_uniquename, paralog.paralog_uniquename))
        if isinstance(host, GeneDetails):
            for target_of in host.target_of_annotations:
                genes.update(target_of.genes)
        return genes

    @staticmethod
    def _rollup_references(host: Union[GeneDetails, ReferenceDetails]) -> set[str]:
        references = set()
        annotations = (
            host.physical_interactions
            + host.genetic_interactions
            + host.ortholog_annotations
            + host.paralog_annotations
        )
        if isinstance(host, GeneDetails):
            annotations = annotations + host.target_of_annotations
        for annotation in annotations:
            if annotation.reference_uniquename:
                references.add(annotation.reference_uniquename)
        return references


def gene_feature_type(gene: GeneDetails) -> str:
    """Display feature type, eg. "mRNA gene" or "pseudogene"."""
    if gene.feature_type == "pseudogene":
        return "pseudogene"
    if gene.transcripts:
        return f"{gene.transcripts[0].transcript_type} gene"
    return gene.feature_type


def build_web_data(
    raw: RawData,
    config: PipelineConfig,
    domain_data: Optional[dict[str, GeneDomainData]] = None,
    rnacentral: Optional[dict[str, list[RfamAnnotation]]] = None,
    eco_mapping: Optional[GoEcoMapping] = None,
) -> WebData:
    """
    Build the complete data model for one export.

    Raises:
        BuildError: If the raw rows are structurally inconsistent
        ConfigError: If a mandatory configuration entry is missing
    """
    return WebDataBuilder(raw, config, domain_data, rnacentral, eco_mapping).build()
