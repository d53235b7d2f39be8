"""Content validation — schema parsing, cross references and dialogue graph checks.

``validate_content`` is side-effect free: every problem is collected into the
returned result and it is up to the caller to report or abort.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from ash_aether.models.content import (
    AddItemEffect,
    DialogueData,
    EnemyData,
    ItemData,
    LootTableData,
    PerkData,
    QuestData,
    RecipeData,
    RegionData,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ContentBundle:
    """Validated, typed content. Treat as read-only."""

    items: list[ItemData] = field(default_factory=list)
    enemies: list[EnemyData] = field(default_factory=list)
    loot_tables: list[LootTableData] = field(default_factory=list)
    quests: list[QuestData] = field(default_factory=list)
    dialogues: list[DialogueData] = field(default_factory=list)
    perks: list[PerkData] = field(default_factory=list)
    recipes: list[RecipeData] = field(default_factory=list)
    regions: list[RegionData] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "items": len(self.items),
            "enemies": len(self.enemies),
            "loot_tables": len(self.loot_tables),
            "quests": len(self.quests),
            "dialogues": len(self.dialogues),
            "perks": len(self.perks),
            "recipes": len(self.recipes),
            "regions": len(self.regions),
        }


@dataclass
class ContentValidationResult:
    ok: bool
    errors: list[str] = field(default_factory=list)
    parsed: ContentBundle | None = None


def validate_content(bundle: Mapping[str, Any]) -> ContentValidationResult:
    """Validate a raw bundle of per-category record lists."""
    errors: list[str] = []

    items = _parse_collection("items", bundle.get("items"), ItemData, errors)
    enemies = _parse_collection("enemies", bundle.get("enemies"), EnemyData, errors)
    loot_tables = _parse_collection("loot_tables", bundle.get("loot_tables"), LootTableData, errors)
    quests = _parse_collection("quests", bundle.get("quests"), QuestData, errors)
    dialogues = _parse_collection("dialogues", bundle.get("dialogues"), DialogueData, errors)
    perks = _parse_collection("perks", bundle.get("perks"), PerkData, errors)
    recipes = _parse_collection("recipes", bundle.get("recipes"), RecipeData, errors)
    regions = _parse_collection("regions", bundle.get("regions"), RegionData, errors)

    if (
        items is None or enemies is None or loot_tables is None or quests is None
        or dialogues is None or perks is None or recipes is None or regions is None
    ):
        return ContentValidationResult(ok=False, errors=errors)

    _check_duplicate_ids("items", (i.id for i in items), errors)
    _check_duplicate_ids("enemies", (e.id for e in enemies), errors)
    _check_duplicate_ids("loot_tables", (t.id for t in loot_tables), errors)
    _check_duplicate_ids("quests", (q.id for q in quests), errors)
    _check_duplicate_ids("dialogues", (d.conversation_id for d in dialogues), errors)
    _check_duplicate_ids("perks", (p.id for p in perks), errors)
    _check_duplicate_ids("recipes", (r.id for r in recipes), errors)
    _check_duplicate_ids("regions", (r.id for r in regions), errors)

    item_ids = {i.id for i in items}
    quest_ids = {q.id for q in quests}
    region_ids = {r.id for r in regions}
    loot_table_ids = {t.id for t in loot_tables}

    for quest in quests:
        for reward in quest.rewards.items:
            if reward.item_id not in item_ids:
                errors.append(f"Quest {quest.id} references unknown reward item {reward.item_id}")
        if quest.prerequisites:
            for required in quest.prerequisites.quests:
                if required not in quest_ids:
                    errors.append(f"Quest {quest.id} requires unknown quest {required}")
        if quest.on_complete:
            for region in quest.on_complete.unlock_regions:
                if region not in region_ids:
                    errors.append(f"Quest {quest.id} unlocks unknown region {region}")

    for conversation in dialogues:
        _check_dialogue_graph(conversation, errors)
        cid = conversation.conversation_id
        for node in conversation.nodes:
            for item_id in _added_items(node.effects):
                if item_id not in item_ids:
                    errors.append(f"Dialogue {cid}/{node.id} references unknown item {item_id}")
            for choice in node.choices:
                for item_id in _added_items(choice.effects):
                    if item_id not in item_ids:
                        errors.append(
                            f"Dialogue {cid}/{node.id}/{choice.id} references unknown item {item_id}"
                        )

    for recipe in recipes:
        if recipe.output.item_id not in item_ids:
            errors.append(f"Recipe {recipe.id} output item does not exist: {recipe.output.item_id}")
        for cost in recipe.cost:
            if cost.item_id not in item_ids:
                errors.append(f"Recipe {recipe.id} references unknown cost item {cost.item_id}")

    for region in regions:
        for neighbor in region.neighbors:
            if neighbor not in region_ids:
                errors.append(f"Region {region.id} references unknown neighbor {neighbor}")

    for enemy in enemies:
        if enemy.loot_table_id not in loot_table_ids:
            errors.append(f"Enemy {enemy.id} references unknown loot table {enemy.loot_table_id}")

    for table in loot_tables:
        for entry in table.entries:
            if entry.item_id not in item_ids:
                errors.append(f"Loot table {table.id} references unknown item {entry.item_id}")

    if errors:
        return ContentValidationResult(ok=False, errors=errors)

    return ContentValidationResult(
        ok=True,
        errors=[],
        parsed=ContentBundle(
            items=items,
            enemies=enemies,
            loot_tables=loot_tables,
            quests=quests,
            dialogues=dialogues,
            perks=perks,
            recipes=recipes,
            regions=regions,
        ),
    )


def format_validation_error(label: str, index: int, error: ValidationError) -> str:
    """``<label>[<index>] <path>: <message>``, one record's issues joined by '; '."""
    issues = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"]) or "<root>"
        issues.append(f"{path}: {issue['msg']}")
    return f"{label}[{index}] " + "; ".join(issues)


def _parse_collection(
    label: str,
    rows: Any,
    model: type[ModelT],
    errors: list[str],
) -> list[ModelT] | None:
    """Parse every row; a category with any bad row yields None."""
    if rows is None:
        rows = []
    if not isinstance(rows, (list, tuple)):
        errors.append(f"{label}: expected a list of records")
        return None

    parsed: list[ModelT] = []
    failed = False
    for index, row in enumerate(rows):
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            errors.append(format_validation_error(label, index, exc))
            failed = True
    return None if failed else parsed


def _check_duplicate_ids(label: str, ids: Iterable[str], errors: list[str]) -> None:
    seen: set[str] = set()
    for entry_id in ids:
        if entry_id in seen:
            errors.append(f"Duplicate id in {label}: {entry_id}")
            continue
        seen.add(entry_id)


def _added_items(effects: Iterable[object]) -> list[str]:
    return [e.item_id for e in effects if isinstance(e, AddItemEffect)]


def _check_dialogue_graph(dialogue: DialogueData, errors: list[str]) -> None:
    """Report choices pointing at missing nodes, then the first cycle found."""
    cid = dialogue.conversation_id
    node_ids = [node.id for node in dialogue.nodes]
    known = set(node_ids)
    adjacency: dict[str, list[str]] = {}

    for node in dialogue.nodes:
        targets = []
        for choice in node.choices:
            if choice.next_node_id not in known:
                errors.append(
                    f"Dialogue {cid} node {node.id} points to missing node {choice.next_node_id}"
                )
            targets.append(choice.next_node_id)
        adjacency[node.id] = targets

    visited: set[str] = set()
    on_stack: set[str] = set()

    def has_cycle(root: str) -> bool:
        # Iterative DFS; long linear conversations must not hit the recursion limit.
        if root in visited:
            return False
        visited.add(root)
        on_stack.add(root)
        frames: list[tuple[str, Iterator[str]]] = [(root, iter(adjacency.get(root, [])))]
        while frames:
            node_id, targets = frames[-1]
            target = next(targets, None)
            if target is None:
                on_stack.discard(node_id)
                frames.pop()
                continue
            if target in on_stack:
                return True
            if target in visited:
                continue
            visited.add(target)
            on_stack.add(target)
            frames.append((target, iter(adjacency.get(target, []))))
        return False

    for node_id in node_ids:
        if has_cycle(node_id):
            errors.append(f"Dialogue {cid} contains a cycle at node {node_id}")
            break
