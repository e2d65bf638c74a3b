import json
import unittest

import jsonpatch

from src.reconciler.preview import (
    PatchComputationError,
    create_three_way_merge_patch,
    has_conflicts,
    preview_operations,
    preview_patch,
)


ORIGINAL = {
    "metadata": {"name": "sa", "uid": "123"},
    "secrets": [{"name": "sa-token-xyz"}],
}
DESIRED = {
    "metadata": {"name": "sa"},
    "secrets": [{"name": "sa-token-xyz"}, {"name": "registry"}],
    "imagePullSecrets": [{"name": "pull"}],
}


class PreviewPatchTests(unittest.TestCase):
    def test_patch_contains_additions_and_deletions(self) -> None:
        patch = json.loads(preview_patch(json.dumps(ORIGINAL).encode(), json.dumps(DESIRED).encode()))
        self.assertEqual(
            patch,
            {
                "metadata": {"name": "sa", "uid": None},
                "secrets": [{"name": "sa-token-xyz"}, {"name": "registry"}],
                "imagePullSecrets": [{"name": "pull"}],
            },
        )

    def test_missing_desired_yields_empty_patch(self) -> None:
        original = json.dumps(ORIGINAL).encode()
        self.assertEqual(preview_patch(original, None), b"{}")
        self.assertEqual(preview_patch(original, b"null"), b"{}")

    def test_output_is_compact_sorted_json(self) -> None:
        patch = preview_patch(b"{}", b'{"b": 1, "a": {"c": true}}')
        self.assertEqual(patch, b'{"a":{"c":true},"b":1}')

    def test_invalid_inputs_raise(self) -> None:
        with self.assertRaises(PatchComputationError):
            preview_patch(b"{not json", b"{}")
        with self.assertRaises(PatchComputationError):
            preview_patch(b"{}", b"[1, 2]")
        with self.assertRaises(PatchComputationError):
            preview_patch(b"null", b"{}")


class ThreeWayMergePatchTests(unittest.TestCase):
    def test_deletions_only_come_from_original(self) -> None:
        patch = create_three_way_merge_patch({"a": 1, "b": 2}, {"b": 2}, {"b": 2, "c": 3})
        self.assertEqual(patch, {"a": None})

    def test_changes_come_from_current(self) -> None:
        patch = create_three_way_merge_patch({"a": 1}, {"a": 2}, {"a": 1})
        self.assertEqual(patch, {"a": 2})

    def test_empty_maps_are_kept_as_values(self) -> None:
        patch = create_three_way_merge_patch({}, {"labels": {}}, None)
        self.assertEqual(patch, {"labels": {}})

    def test_identical_documents_produce_no_deletions(self) -> None:
        patch = create_three_way_merge_patch(ORIGINAL, ORIGINAL, ORIGINAL)
        self.assertEqual(patch, {})

    def test_conflict_detection(self) -> None:
        self.assertTrue(has_conflicts({"a": 1}, {"a": None}))
        self.assertTrue(has_conflicts({"a": [1]}, {"a": [1, 2]}))
        self.assertFalse(has_conflicts({"a": {"b": 1}}, {"a": {"c": None}}))
        self.assertFalse(has_conflicts({"a": 1}, {"b": None}))


class PreviewOperationsTests(unittest.TestCase):
    def test_operations_apply_cleanly(self) -> None:
        ops = preview_operations(ORIGINAL, DESIRED)
        self.assertTrue(ops)
        self.assertEqual(jsonpatch.apply_patch(ORIGINAL, ops, in_place=False), DESIRED)

    def test_no_desired_document_means_no_operations(self) -> None:
        self.assertEqual(preview_operations(ORIGINAL, None), [])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
