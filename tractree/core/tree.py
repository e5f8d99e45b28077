"""Taxonomy tree construction from fully qualified lineage strings."""

import logging
from typing import List, Dict, Optional, Iterator, Iterable, Any

from Bio.Phylo.BaseTree import Tree, Clade
from flatten_dict import unflatten

from tractree.models.errors import InputError, LineageCollisionError, TreeConsistencyError
from tractree.core.utils import LINEAGE_DELIMITER, ROOT_LABEL

logger = logging.getLogger(__name__)

class TaxonomyNode:
    """A node of the taxonomy tree, keyed by its full qualified prefix."""

    __slots__ = ('key', 'label', 'depth', 'parent', 'children', 'feature_id')

    def __init__(self, key: str, label: str, depth: int, parent: Optional['TaxonomyNode'] = None):
        self.key = key
        self.label = label
        self.depth = depth
        self.parent = parent
        self.children: Dict[str, 'TaxonomyNode'] = {}
        self.feature_id: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def sorted_children(self) -> List['TaxonomyNode']:
        """Children in edge-label order; every traversal goes through here."""
        return [self.children[label] for label in sorted(self.children)]

    def __repr__(self) -> str:
        return f"TaxonomyNode({self.key!r}, depth={self.depth}, children={len(self.children)})"

class TaxonomyTree:
    """
    Rooted taxonomy tree stored as an arena of nodes.

    The root has the empty key and a display label. Every other node is
    registered under its key in `nodes`; leaves carry the feature id.
    A parent registers each child under the child's key relative to the
    parent, which is the child's own label unless chains were collapsed.
    `feature_ids` keeps the feature order of the table the tree was built from.
    """

    def __init__(self, root: TaxonomyNode, nodes: Dict[str, TaxonomyNode],
                 feature_ids: List[str], delimiter: str = LINEAGE_DELIMITER):
        self.root = root
        self.nodes = nodes
        self.feature_ids = list(feature_ids)
        self.delimiter = delimiter

    def edge_label(self, node: TaxonomyNode) -> str:
        """Key of `node` relative to its parent; the root's display label for the root."""
        if node.parent is None:
            return node.label
        if node.parent.parent is None:
            return node.key
        return node.key[len(node.parent.key) + len(self.delimiter):]

    def node(self, key: str) -> TaxonomyNode:
        """Look up a node by key; the root has key ``""``."""
        try:
            return self.nodes[key]
        except KeyError:
            raise KeyError(f"No node with key {key!r} in taxonomy tree")

    def preorder(self, node: Optional[TaxonomyNode] = None) -> Iterator[TaxonomyNode]:
        """Yield nodes parent-first, children in label order."""
        stack = [node or self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.sorted_children()))

    def postorder(self, node: Optional[TaxonomyNode] = None) -> Iterator[TaxonomyNode]:
        """Yield nodes children-first, children in label order."""
        stack = [(node or self.root, False)]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                yield current
                continue
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(current.sorted_children()))

    def leaves(self) -> List[TaxonomyNode]:
        return [node for node in self.preorder() if node.is_leaf and not node.is_root]

    def internal_nodes(self) -> List[TaxonomyNode]:
        return [node for node in self.preorder() if not node.is_leaf]

    def descendant_leaves(self, node: TaxonomyNode) -> List[str]:
        """Feature ids of the leaves below `node` (a leaf is its own descendant)."""
        return [n.feature_id for n in self.preorder(node) if n.is_leaf and not n.is_root]

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_leaves(self) -> int:
        return len(self.feature_ids)

    def validate(self) -> None:
        """
        Check the structural invariants of the tree.

        Raises:
            TreeConsistencyError: If a leaf cannot reach the root, a child is
                registered under anything but its key relative to the parent,
                or the leaves do not match the recorded features one-to-one
        """
        for key, node in self.nodes.items():
            for label, child in node.children.items():
                if child.parent is not node or self.edge_label(child) != label:
                    raise TreeConsistencyError(
                        f"Node {key!r} has a child registered as {label!r} that does not belong to it"
                    )

        leaf_ids = []
        for node in self.nodes.values():
            if not node.is_leaf or node.is_root:
                continue
            current, steps = node, 0
            while current.parent is not None and steps <= len(self.nodes):
                current, steps = current.parent, steps + 1
            if current is not self.root:
                raise TreeConsistencyError(
                    f"Leaf for feature {node.feature_id} ({node.key!r}) has no path to the root"
                )
            leaf_ids.append(node.feature_id)

        if sorted(leaf_ids) != sorted(self.feature_ids):
            missing = sorted(set(self.feature_ids) - set(leaf_ids))
            extra = sorted(set(leaf_ids) - set(self.feature_ids))
            raise TreeConsistencyError(
                f"Tree leaves do not match features: missing {missing}, unexpected {extra}"
            )

def build_tree(
    lineages: Iterable[str],
    delimiter: str = LINEAGE_DELIMITER,
    root_label: str = ROOT_LABEL
) -> TaxonomyTree:
    """
    Build a rooted taxonomy tree from fully qualified lineage strings.

    Each lineage is split once; the nodes on its path are keyed by the
    qualified prefix up to that segment, so features sharing their first k
    segments share the same k nodes. The last segment is the feature id.

    Args:
        lineages: Lineage strings, one per feature, in table order
        delimiter: Segment separator used in the lineage strings
        root_label: Display label for the root

    Returns:
        The built and validated TaxonomyTree

    Raises:
        InputError: If no lineages are given or a lineage has an empty segment
        LineageCollisionError: If the same lineage occurs twice
        TreeConsistencyError: If a lineage ends at an internal node of another
    """
    lineages = list(lineages)
    if not lineages:
        raise InputError("Cannot build a taxonomy tree from an empty lineage list")

    root = TaxonomyNode(key="", label=root_label, depth=0)
    nodes: Dict[str, TaxonomyNode] = {"": root}
    leaf_keys = set()
    feature_ids = []

    for lineage in lineages:
        if lineage in leaf_keys:
            raise LineageCollisionError(
                f"Lineage {lineage!r} occurs more than once",
                feature_ids=[lineage.split(delimiter)[-1]]
            )
        segments = lineage.split(delimiter)
        if any(not segment for segment in segments):
            raise InputError(f"Lineage {lineage!r} has an empty segment")

        current = root
        for depth, segment in enumerate(segments, start=1):
            child = current.children.get(segment)
            if child is None:
                if current.feature_id is not None:
                    raise TreeConsistencyError(
                        f"Lineage {lineage!r} extends below feature {current.feature_id}"
                    )
                key = segment if current is root else f"{current.key}{delimiter}{segment}"
                child = TaxonomyNode(key=key, label=segment, depth=depth, parent=current)
                current.children[segment] = child
                nodes[key] = child
            current = child

        if current.children:
            raise TreeConsistencyError(
                f"Lineage {lineage!r} ends at an internal node of the taxonomy tree"
            )
        current.feature_id = segments[-1]
        leaf_keys.add(lineage)
        feature_ids.append(current.feature_id)

    tree = TaxonomyTree(root, nodes, feature_ids, delimiter)
    tree.validate()
    logger.info(f"Built taxonomy tree with {tree.n_nodes} nodes and {tree.n_leaves} leaves")
    return tree

def collapse_single_child_chains(tree: TaxonomyTree) -> TaxonomyTree:
    """
    Remove internal nodes that have exactly one child.

    The child of a removed node is attached to the nearest surviving ancestor.
    Surviving nodes keep their keys and labels and are registered under their
    key relative to the new parent, so same-label nodes from different ranks
    can become siblings. Every surviving node still covers exactly the
    leaves it covered before. The root always survives.
    The input tree is left untouched.

    Args:
        tree: Tree to collapse

    Returns:
        A new, collapsed TaxonomyTree
    """
    new_root = TaxonomyNode(key=tree.root.key, label=tree.root.label, depth=0)
    nodes: Dict[str, TaxonomyNode] = {new_root.key: new_root}
    removed = 0

    stack = [(child, new_root) for child in reversed(tree.root.sorted_children())]
    while stack:
        old, new_parent = stack.pop()
        if len(old.children) == 1:
            removed += 1
            (only_child,) = old.children.values()
            stack.append((only_child, new_parent))
            continue

        new = TaxonomyNode(key=old.key, label=old.label, depth=new_parent.depth + 1, parent=new_parent)
        new.feature_id = old.feature_id
        new_parent.children[tree.edge_label(new)] = new
        nodes[new.key] = new
        stack.extend((child, new) for child in reversed(old.sorted_children()))

    collapsed = TaxonomyTree(new_root, nodes, tree.feature_ids, tree.delimiter)
    collapsed.validate()
    logger.info(f"Collapsed {removed} single-child nodes; {collapsed.n_nodes} nodes remain")
    return collapsed

def to_phylo(tree: TaxonomyTree) -> Tree:
    """
    Convert a taxonomy tree into a Biopython Phylo tree for rendering.

    Clades are named by node label; leaf clades by feature id.
    """
    def convert(node: TaxonomyNode) -> Clade:
        name = node.feature_id if node.feature_id is not None else node.label
        return Clade(branch_length=1.0 if not node.is_root else None, name=name,
                     clades=[convert(child) for child in node.sorted_children()])

    return Tree(root=convert(tree.root), rooted=True, name=tree.root.label)

def to_nested_dict(tree: TaxonomyTree) -> Dict[str, Any]:
    """
    Represent the tree as nested dicts of edge labels ending in feature ids.

    The outer key is the root label.
    """
    flat = {}
    for leaf in tree.leaves():
        path = []
        node = leaf
        while node is not None:
            path.append(tree.edge_label(node))
            node = node.parent
        flat[tuple(reversed(path))] = leaf.feature_id
    return unflatten(flat)
