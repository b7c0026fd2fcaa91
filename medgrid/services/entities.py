# MEDGRID REGISTRY GRID

# COMPONENT: REGISTRY ENTITY DEFINITIONS
# REQUIREMENTS SATISFIED: record normalization, sentinel handling, derived-field rule, remote payloads
"""
medgrid/services/entities.py

Describes the two kinds of registry entity the grid edits: drugs and
manufacturers.

Each ``EntitySpec`` bundles everything the rest of the core needs to know
about an entity without hard-coding it elsewhere:
    - the identifier field and the default column list (field, title)
    - which fields the registry API declares numeric
    - the remote endpoint paths for list, paginated list, create, update
      and delete
    - how a raw API record is flattened into a grid record, with every
      missing value replaced by the "N/A" sentinel
    - derived-field rules (a drug's DFSequence follows its Form)
    - the payloads a full-row save sends (drugs also update their dosage
      and presentation sub-records)
"""
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import logging

logger = logging.getLogger("medgrid")

# Sentinel for "explicitly not available", distinct from None/absent
NA = "N/A"

Record = Dict[str, Any]


def is_unset(value: Any) -> bool:
    return value is None or value == "" or value == NA


def _or_na(value: Any) -> Any:
    return value if value else NA


def _pick(raw: Record, *keys: str) -> Any:
    """First truthy value among ``keys``; lets already-flat records round-trip."""
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def _first(items: Any) -> Record:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


class DerivedRule:
    """
    When ``trigger`` changes to some value, copy ``target`` from another
    loaded record that already has that trigger value and a set target.
    """

    def __init__(self, trigger: str, target: str):
        self.trigger = trigger
        self.target = target

    def lookup(self, id_field: str, record_id: Any, value: Any,
               records: Iterable[Record]) -> Optional[Any]:
        rid = str(record_id)
        for other in records:
            if str(other.get(id_field)) == rid:
                continue
            if other.get(self.trigger) == value and not is_unset(other.get(self.target)):
                return other[self.target]
        return None


class EntitySpec:
    def __init__(
        self,
        *,
        name: str,
        label: str,
        id_field: str,
        columns: List[Tuple[str, str]],
        numeric_fields: Iterable[str],
        endpoints: Dict[str, Optional[str]],
        list_key: Optional[str],
        normalizer: Callable[[Record], Record],
        derived_rules: Iterable[DerivedRule] = (),
        row_payloads: Optional[Callable[["EntitySpec", Record], List[Tuple[str, Record]]]] = None,
        create_payload: Optional[Callable[[Record], Record]] = None,
    ):
        self.name = name
        self.label = label
        self.id_field = id_field
        self.columns = list(columns)
        self.numeric_fields = frozenset(numeric_fields)
        self.endpoints = dict(endpoints)
        self.list_key = list_key
        self._normalizer = normalizer
        self.derived_rules = list(derived_rules)
        self._row_payloads = row_payloads
        self._create_payload = create_payload

    def __repr__(self) -> str:
        return f"EntitySpec({self.name!r})"

    # -----------------------------
    # Endpoints
    # -----------------------------
    def path(self, operation: str, record_id: Any = None) -> str:
        template = self.endpoints.get(operation)
        if not template:
            raise KeyError(f"{self.name} has no '{operation}' endpoint")
        return template.format(id=record_id)

    def supports(self, operation: str) -> bool:
        return bool(self.endpoints.get(operation))

    # -----------------------------
    # Records
    # -----------------------------
    def normalize(self, raw: Record) -> Record:
        return self._normalizer(raw)

    def normalize_all(self, raws: Iterable[Record]) -> List[Record]:
        records = []
        for raw in raws:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object %s record: %r", self.name, raw)
                continue
            record = self.normalize(raw)
            if is_unset(record.get(self.id_field)):
                logger.warning("Skipping %s record without %s", self.name, self.id_field)
                continue
            records.append(record)
        return records

    def strip_sentinels(self, payload: Record) -> Record:
        """The registry rejects non-numeric text in numeric fields."""
        return {
            k: (None if k in self.numeric_fields and v == NA else v)
            for k, v in payload.items()
        }

    def derived_updates(self, record_id: Any, field: str, value: Any,
                        records: Iterable[Record]) -> Record:
        records = list(records)
        updates: Record = {}
        for rule in self.derived_rules:
            if rule.trigger != field:
                continue
            found = rule.lookup(self.id_field, record_id, value, records)
            if found is not None:
                updates[rule.target] = found
        return updates

    def row_payloads(self, record: Record) -> List[Tuple[str, Record]]:
        """(path, payload) pairs sent, in order, by a full-row save."""
        if self._row_payloads is not None:
            return self._row_payloads(self, record)
        record_id = record[self.id_field]
        return [(self.path("update", record_id), self.strip_sentinels(record))]

    def create_payload(self, values: Record) -> Record:
        if self._create_payload is not None:
            return self._create_payload(values)
        return self.strip_sentinels(values)

    def column_titles(self, fields: Optional[Iterable[str]] = None) -> List[Tuple[str, str]]:
        titles = dict(self.columns)
        if fields is None:
            return list(self.columns)
        return [(f, titles.get(f, f)) for f in fields]


# ---------------------------------------------------------------------------
# Drugs
# ---------------------------------------------------------------------------

# (grid field, API field) for top-level drug values
_DRUG_SCALARS: List[Tuple[str, Tuple[str, ...]]] = [
    (name, (name,)) for name in (
        "DrugID", "DrugName", "DrugNameAR", "Seq", "ProductType",
        "ATCRelatedIngredient", "OtherIngredients", "Dosage", "PresentationLNDI",
        "DFSequence", "Form", "FormRaw", "FormLNDI", "Route", "RouteRaw",
        "RouteLNDI", "Parentaral", "Stratum", "Agent", "Manufacturer", "Country",
        "RegistrationNumber", "Notes", "Description", "Indication", "Posology",
        "MethodOfAdministration", "Contraindications", "PrecautionForUse",
        "EffectOnFGN", "SideEffect", "Toxicity", "StorageCondition", "ShelfLife",
        "IngredientLabel", "ImagesPath", "InteractionIngredientName", "IsDouanes",
        "RegistrationDate", "PublicPrice", "SubsidyLabel", "SubsidyPercentage",
        "HospPricing", "Substitutable", "CreatedBy", "CreatedDate", "UpdatedBy",
        "UpdatedDate", "ReviewDate", "MoPHCode", "CargoShippingTerms",
        "NotMarketed", "PriceForeign", "CurrencyForeign",
    )
] + [
    ("ATC", ("ATC_Code", "ATC")),
    ("Parent", ("RouteParent", "Parent")),
]

DOSAGE_KEYS = [
    f"{part}{i}{suffix}"
    for i in (1, 2, 3)
    for part in ("Numerator", "Denominator")
    for suffix in ("", "Unit")
]

PRESENTATION_KEYS = [
    "Description",
    "UnitQuantity1", "UnitType1", "UnitQuantity2", "UnitType2",
    "PackageQuantity1", "PackageType1", "PackageQuantity2", "PackageType2",
    "PackageQuantity3", "PackageType3",
]

DRUG_COLUMNS = [
    ("DrugID", "DrugID"),
    ("DrugName", "DrugName"),
    ("MoPHCode", "MoPHCode"),
    ("DrugNameAR", "DrugNameAR"),
    ("Seq", "Seq"),
    ("ProductType", "ProductType"),
    ("ATC", "ATC"),
    ("ATCRelatedIngredient", "ATC Related Ingredient"),
    ("OtherIngredients", "All Ingredients"),
    ("Dosage", "Dosage (merged)"),
    ("Form", "Dosage-form (clean)"),
    ("DFSequence", "DF Sequence"),
    ("FormRaw", "Form Raw"),
    ("FormLNDI", "Form LNDI"),
    ("Parent", "Route Parent"),
    ("Route", "Route (clean)"),
    ("RouteRaw", "Route Raw"),
    ("RouteLNDI", "Route LNDI"),
    ("Parentaral", "Parentaral"),
    ("Stratum", "Stratum"),
    ("Amount", "Amount"),
    ("Agent", "Agent"),
    ("Manufacturer", "Manufacturer"),
    ("Country", "Country"),
]


def normalize_drug(raw: Record) -> Record:
    record: Record = {}
    for field, sources in _DRUG_SCALARS:
        record[field] = _or_na(_pick(raw, *sources))

    dosage = _first(raw.get("Dosages"))
    for key in DOSAGE_KEYS:
        record[f"Dosage{key}"] = _or_na(dosage.get(key) or raw.get(f"Dosage{key}"))

    presentation = _first(raw.get("DrugPresentations"))
    for key in PRESENTATION_KEYS:
        record[f"Presentation{key}"] = _or_na(
            presentation.get(key) or raw.get(f"Presentation{key}")
        )

    record["isOTC"] = raw.get("isOTC") or False
    record["Amount"] = raw.get("Amount") or 0
    image = raw.get("ImageDefault")
    record["ImageDefault"] = None if image in (None, NA) else image
    return record


def _drug_sub_payloads(record: Record) -> Tuple[Record, Record]:
    dosage = {key: record.get(f"Dosage{key}") for key in DOSAGE_KEYS}
    presentation = {key: record.get(f"Presentation{key}") for key in PRESENTATION_KEYS}
    return dosage, presentation


def _drug_row_payloads(spec: EntitySpec, record: Record) -> List[Tuple[str, Record]]:
    drug_id = record["DrugID"]
    main = dict(record)
    if not is_unset(main.get("ATC")):
        main["ATC_Code"] = main["ATC"]
    dosage, presentation = _drug_sub_payloads(record)
    return [
        (spec.path("update", drug_id), spec.strip_sentinels(main)),
        (f"/dosages/updateByDrug/{drug_id}", dosage),
        (f"/presentations/updateByDrug/{drug_id}", presentation),
    ]


def _drug_create_payload(values: Record) -> Record:
    drug = {k: v for k, v in values.items()
            if not k.startswith("Dosage") and not k.startswith("Presentation")}
    drug.pop("DrugID", None)
    if drug.get("ATC"):
        drug["ATC_Code"] = drug["ATC"]
    dosage, presentation = _drug_sub_payloads(values)
    return {
        "drug": DRUG.strip_sentinels(drug),
        "dosage": {k: v for k, v in dosage.items() if v is not None},
        "presentation": {k: v for k, v in presentation.items() if v is not None},
    }


DRUG = EntitySpec(
    name="drugs",
    label="drug",
    id_field="DrugID",
    columns=DRUG_COLUMNS,
    numeric_fields=("ImageDefault", "Amount", "IsDouanes", "NotMarketed"),
    endpoints={
        "list": "/drugs/all",
        "page": "/drugs/paginated",
        "create": "/drugs/add",
        "update": "/drugs/update/{id}",
        "delete": "/drugs/delete/{id}",
    },
    list_key="drugs",
    normalizer=normalize_drug,
    derived_rules=[DerivedRule(trigger="Form", target="DFSequence")],
    row_payloads=_drug_row_payloads,
    create_payload=_drug_create_payload,
)


# ---------------------------------------------------------------------------
# Manufacturers
# ---------------------------------------------------------------------------

MANUFACTURER_COLUMNS = [
    ("ManufacturerId", "ID"),
    ("ManufacturerName", "Manufacturer Name"),
    ("Country", "Country"),
    ("ParentCompany", "Parent Company"),
    ("ParentGroup", "Parent Group"),
]


def normalize_manufacturer(raw: Record) -> Record:
    return {
        "ManufacturerId": raw.get("ManufacturerId"),
        "ManufacturerName": _or_na(raw.get("ManufacturerName")),
        "Country": _or_na(raw.get("Country")),
        "ParentCompany": _or_na(raw.get("ParentCompany")),
        "ParentGroup": _or_na(raw.get("ParentGroup")),
    }


def _manufacturer_create_payload(values: Record) -> Record:
    payload = {k: values.get(k) for k, _ in MANUFACTURER_COLUMNS if k != "ManufacturerId"}
    return {k: (None if v == NA else v) for k, v in payload.items()}


MANUFACTURER = EntitySpec(
    name="manufacturers",
    label="manufacturer",
    id_field="ManufacturerId",
    columns=MANUFACTURER_COLUMNS,
    numeric_fields=("ManufacturerId",),
    endpoints={
        "list": "/manufacturer",
        "page": None,
        "create": "/manufacturer/add",
        "update": "/manufacturer/{id}",
        "delete": "/manufacturer/{id}",
    },
    list_key=None,
    normalizer=normalize_manufacturer,
    create_payload=_manufacturer_create_payload,
)


ENTITIES: Dict[str, EntitySpec] = {
    DRUG.name: DRUG,
    MANUFACTURER.name: MANUFACTURER,
}


def get_entity(name: str) -> EntitySpec:
    try:
        return ENTITIES[name.strip().lower()]
    except KeyError:
        raise KeyError(f"Unknown entity '{name}'") from None
