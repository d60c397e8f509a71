"""
Unit tests for the decoders

Pure functions only: no collaborators involved.
"""

import logging
from types import SimpleNamespace
from unittest.mock import Mock

import numpy as np
import pytest

from inference_pipelines.decoders.audio_chunking import (
    plan_windows,
    stride_to_seconds,
    time_precision,
)
from inference_pipelines.decoders.classification import (
    decode_classification,
    decode_fill_mask,
    decode_token_classification,
)
from inference_pipelines.decoders.features import mean_pooling, normalize, similarity
from inference_pipelines.decoders.generation import (
    apply_prefixes,
    flatten_generated,
    with_prompt,
    wrap_key,
)
from inference_pipelines.decoders.question_answering import decode_answers, find_spans
from inference_pipelines.decoders.unwrap import UnwrapPolicy, unwrap
from inference_pipelines.decoders.vision import (
    check_single_image,
    decode_segments,
    ensure_supported_subtask,
    label_detections,
    select_post_processor,
)
from inference_pipelines.decoders.zero_shot import (
    build_hypotheses,
    decode_image_text_logits,
    rank_labels,
    resolve_nli_label_ids,
    score_entailment,
)
from inference_pipelines.errors import UnsupportedSubtaskError, ValidationError

ID2LABEL = {0: "A", 1: "B", 2: "C"}


class TestClassificationDecoder:
    """Tests for decode_classification"""

    def test_topk_1_flattens_each_item(self):
        # Arrange
        logits = np.array([[1.0, 2.0, 0.0], [3.0, 0.0, 0.0]])

        # Act
        results = decode_classification(logits, ID2LABEL, topk=1)

        # Assert
        assert [r["label"] for r in results] == ["B", "A"]
        assert all(isinstance(r, dict) for r in results)

    def test_topk_n_returns_n_sorted_scores_summing_to_one(self):
        # Arrange
        logits = np.array([[0.5, 2.0, 1.0]])

        # Act
        results = decode_classification(logits, ID2LABEL, topk=3)

        # Assert
        assert len(results) == 1
        item = results[0]
        assert [r["label"] for r in item] == ["B", "C", "A"]
        scores = [r["score"] for r in item]
        assert scores == sorted(scores, reverse=True)
        assert sum(scores) == pytest.approx(1.0)

    def test_string_keyed_id2label(self):
        # Act
        results = decode_classification(np.array([[0.0, 1.0]]), {"0": "NEG", "1": "POS"})

        # Assert
        assert results[0]["label"] == "POS"


class TestTokenClassificationDecoder:
    """Tests for decode_token_classification"""

    def test_skips_ignored_labels_and_special_tokens(self):
        # Arrange
        logits = np.array([[[0.0, 5.0], [0.0, 5.0], [5.0, 0.0], [0.0, 5.0]]])
        input_ids = np.array([[0, 11, 12, 1]])
        words = {11: "ann", 12: "lives"}

        def decode_token(token_id):
            return words.get(token_id, "")

        # Act
        results = decode_token_classification(logits, input_ids, {0: "O", 1: "PER"}, decode_token)

        # Assert
        assert len(results) == 1
        assert results[0] == [{
            "entity": "PER",
            "score": pytest.approx(float(np.exp(5) / (1 + np.exp(5)))),
            "index": 1,
            "word": "ann",
            "start": None,
            "end": None,
        }]

    def test_custom_ignore_labels(self):
        # Arrange
        logits = np.array([[[5.0, 0.0]]])

        # Act
        results = decode_token_classification(
            logits, np.array([[7]]), {0: "O", 1: "PER"}, lambda _: "x", ignore_labels=()
        )

        # Assert
        assert results[0][0]["entity"] == "O"


class TestFillMaskDecoder:
    """Tests for decode_fill_mask"""

    def test_ranks_tokens_at_mask_position(self):
        # Arrange
        logits = np.zeros((3, 4))
        logits[1] = [0.0, 1.0, 3.0, 2.0]
        logits[0] = [9.0, 0.0, 0.0, 0.0]  # not the mask position

        # Act
        predictions = decode_fill_mask(
            logits, [0, 9, 1], 1, ["a", "b", "c", "d"],
            lambda ids: "-".join(str(i) for i in ids), topk=2,
        )

        # Assert
        assert [p["token"] for p in predictions] == [2, 3]
        assert predictions[0]["token_str"] == "c"
        assert predictions[0]["sequence"] == "0-2-1"
        assert predictions[0]["score"] > predictions[1]["score"]


class TestQuestionAnsweringDecoder:
    """Tests for find_spans and decode_answers"""

    def test_spans_lie_after_separator_with_start_before_end(self):
        # Arrange
        rng = np.random.default_rng(0)
        start_logits = rng.normal(size=8)
        end_logits = rng.normal(size=8)

        # Act
        spans = find_spans(start_logits, end_logits, sep_index=3)

        # Assert
        assert len(spans) == 10  # 4 positions -> 4 * 5 / 2 ordered pairs
        for start, end, _ in spans:
            assert 3 < start <= end < 8
        scores = [score for _, _, score in spans]
        assert scores == sorted(scores, reverse=True)

    def test_score_is_product_of_independent_probabilities(self):
        # Arrange
        start_logits = np.array([0.0, 0.0, 2.0, 1.0])
        end_logits = np.array([0.0, 0.0, 0.5, 3.0])

        # Act
        start, end, score = find_spans(start_logits, end_logits, sep_index=1)[0]

        # Assert
        e_start = np.exp(start_logits) / np.exp(start_logits).sum()
        e_end = np.exp(end_logits) / np.exp(end_logits).sum()
        assert (start, end) == (2, 3)
        assert score == pytest.approx(e_start[2] * e_end[3])

    def test_padding_positions_are_never_candidates(self):
        # Act
        spans = find_spans(np.zeros(5), np.array([0, 0, 0, 0, 9.0]), sep_index=1,
                           attention_mask=[1, 1, 1, 1, 0])

        # Assert
        assert all(end < 4 for _, end, _ in spans)

    def test_decode_answers_flattens_topk_per_item(self):
        # Arrange
        input_ids = np.array([[0, 20, 1, 30, 31, 1], [0, 20, 1, 30, 31, 1]])
        start_logits = np.array([[0, 0, 0, 9.0, 0, 0]] * 2)
        end_logits = np.array([[0, 0, 0, 0, 9.0, 0]] * 2)
        decode = Mock(side_effect=lambda ids: " ".join(str(i) for i in ids))

        # Act
        answers = decode_answers(start_logits, end_logits, input_ids, 1, decode, topk=2)

        # Assert
        assert len(answers) == 4
        assert answers[0]["answer"] == "30 31"
        assert answers[0]["score"] > answers[1]["score"]


class TestZeroShotDecoders:
    """Tests for NLI and image-text zero-shot decoding"""

    def test_build_hypotheses(self):
        assert build_hypotheses(["a", "b"], "It is {}.") == ["It is a.", "It is b."]

    def test_resolves_label_ids_case_insensitively(self):
        # Act
        ids = resolve_nli_label_ids({"CONTRADICTION": 2, "Neutral": 1, "Entailment": 0})

        # Assert
        assert ids == (0, 2)

    def test_missing_label_ids_fall_back_with_warning(self, caplog):
        # Act
        with caplog.at_level(logging.WARNING):
            ids = resolve_nli_label_ids({"LABEL_0": 0})

        # Assert
        assert ids == (2, 0)
        assert "entailment" in caplog.text
        assert "contradiction" in caplog.text

    def test_independent_scores_use_entailment_vs_contradiction(self):
        # Arrange
        pair_logits = [[0.0, 7.0, 1.0], [0.0, 0.0, 0.0]]

        # Act
        scores = score_entailment(pair_logits, entailment_id=2, contradiction_id=0,
                                  independent=True)

        # Assert
        assert scores[0] == pytest.approx(np.e / (1 + np.e))
        assert scores[1] == pytest.approx(0.5)

    def test_joint_scores_sum_to_one(self):
        # Act
        scores = score_entailment([[0.0, 0.0, 1.0], [0.0, 0.0, 3.0]], 2, 0, independent=False)

        # Assert
        assert scores.sum() == pytest.approx(1.0)
        assert scores[1] > scores[0]

    def test_rank_labels_sorts_descending(self):
        # Act
        result = rank_labels("text", ["a", "b", "c"], [0.1, 0.7, 0.2])

        # Assert
        assert result == {"sequence": "text", "labels": ["b", "c", "a"],
                          "scores": [0.7, 0.2, 0.1]}

    def test_image_text_logits_keep_label_order(self):
        # Act
        results = decode_image_text_logits(np.array([[1.0, 3.0], [2.0, 2.0]]), ["cat", "dog"])

        # Assert
        assert [r["label"] for r in results[0]] == ["cat", "dog"]
        assert sum(r["score"] for r in results[0]) == pytest.approx(1.0)
        assert results[1][0]["score"] == pytest.approx(0.5)


class TestFeatureDecoders:
    """Tests for mean pooling, normalisation and similarity"""

    def test_full_mask_equals_plain_mean(self):
        # Arrange
        hidden = np.arange(12, dtype=np.float64).reshape(1, 3, 4)

        # Act
        pooled = mean_pooling(hidden, np.ones((1, 3)))

        # Assert
        np.testing.assert_allclose(pooled, hidden.mean(axis=1))

    def test_masked_positions_are_excluded(self):
        # Arrange
        hidden = np.array([[[1.0, 1.0], [3.0, 5.0], [100.0, 100.0]]])

        # Act
        pooled = mean_pooling(hidden, np.array([[1, 1, 0]]))

        # Assert
        np.testing.assert_allclose(pooled, [[2.0, 3.0]])

    def test_all_zero_mask_pools_to_nan(self):
        # Act
        pooled = mean_pooling(np.ones((2, 2, 3)), np.array([[1, 1], [0, 0]]))

        # Assert
        np.testing.assert_allclose(pooled[0], [1.0, 1.0, 1.0])
        assert np.isnan(pooled[1]).all()

    def test_normalize_in_place(self):
        # Arrange
        embeddings = np.array([[3.0, 4.0], [0.0, 2.0]])

        # Act
        result = normalize(embeddings)

        # Assert
        assert result is embeddings
        np.testing.assert_allclose(embeddings, [[0.6, 0.8], [0.0, 1.0]])

    def test_similarity_is_symmetric(self):
        a, b = [1.0, 2.0, 3.0], [-1.0, 0.5, 2.0]
        assert similarity(a, b) == pytest.approx(similarity(b, a))

    def test_normalized_fast_path_matches_general_formula(self):
        # Arrange
        vectors = normalize(np.array([[1.0, 2.0, 3.0], [-1.0, 0.5, 2.0]]))

        # Act / Assert
        assert similarity(vectors[0], vectors[1], is_normalized=True) == pytest.approx(
            similarity(vectors[0], vectors[1])
        )


class TestAudioChunking:
    """Tests for plan_windows and stride helpers"""

    def test_no_chunking_yields_one_window(self):
        # Act
        windows = plan_windows(25, sampling_rate=10)

        # Assert
        assert len(windows) == 1
        assert windows[0].stride == (25, 0, 0)
        assert windows[0].is_last

    def test_clip_shorter_than_chunk_yields_one_window(self):
        # Act
        windows = plan_windows(8000, sampling_rate=16000, chunk_length_s=1)

        # Assert
        assert len(windows) == 1
        assert (windows[0].start, windows[0].end) == (0, 8000)
        assert windows[0].stride == (8000, 0, 0)

    def test_long_clip_windows_cover_every_sample(self):
        # Act
        windows = plan_windows(70, sampling_rate=10, chunk_length_s=3, stride_length_s=0.5)

        # Assert
        assert [(w.start, w.end) for w in windows] == [(0, 30), (20, 50), (40, 70)]
        assert [w.stride for w in windows] == [(30, 0, 5), (30, 5, 5), (30, 5, 0)]
        assert [w.is_last for w in windows] == [False, False, True]

        # Windows minus their overlaps tile the clip exactly
        kept = [(w.start + w.stride_left, w.end - w.stride_right) for w in windows]
        assert kept[0][0] == 0
        assert kept[-1][1] == 70
        for previous, current in zip(kept, kept[1:]):
            assert previous[1] == current[0]

    def test_default_stride_is_a_sixth_of_the_chunk(self):
        # Act
        windows = plan_windows(100, sampling_rate=6, chunk_length_s=6)

        # Assert
        assert windows[0].stride_right == 6

    def test_stride_not_shorter_than_chunk_is_rejected(self):
        with pytest.raises(ValidationError):
            plan_windows(100, sampling_rate=10, chunk_length_s=2, stride_length_s=2)

    def test_strides_leaving_no_advance_are_rejected(self):
        with pytest.raises(ValidationError):
            plan_windows(100, sampling_rate=10, chunk_length_s=1, stride_length_s=0.5)

    def test_stride_to_seconds_and_time_precision(self):
        assert stride_to_seconds((30, 5, 0), 10) == (3.0, 0.5, 0.0)
        assert time_precision(30, 1500) == pytest.approx(0.02)


class TestGenerationHelpers:
    """Tests for generation helpers"""

    def test_prefixes_use_full_task_name(self):
        # Arrange
        config = SimpleNamespace(
            prefix=None,
            task_specific_params={"translation_en_to_fr": {"prefix": "translate English to French: "}},
        )

        # Act
        texts = apply_prefixes(["hello"], config, "translation_en_to_fr")

        # Assert
        assert texts == ["translate English to French: hello"]

    def test_global_prefix_is_applied_before_task_prefix(self):
        # Arrange
        config = SimpleNamespace(prefix="G ", task_specific_params={"summarization": {"prefix": "T "}})

        # Act / Assert
        assert apply_prefixes(["x"], config, "summarization") == ["T G x"]

    def test_missing_prefixes_leave_texts_unchanged(self):
        config = SimpleNamespace(prefix=None, task_specific_params=None)
        assert apply_prefixes(["x"], config, "summarization") == ["x"]

    def test_result_shaping_helpers(self):
        assert flatten_generated([[[1], [2]], [[3]]]) == [[1], [2], [3]]
        assert wrap_key(["a"], "summary_text") == [{"summary_text": "a"}]
        assert wrap_key(["a"], None) == ["a"]
        assert with_prompt(" Hi ", [" there"]) == [{"generated_text": "Hi there"}]


class TestUnwrap:
    """Tests for the unwrap policies"""

    def test_batch_policy(self):
        assert unwrap(["a"], UnwrapPolicy.BATCH, batched=False) == "a"
        assert unwrap(["a"], UnwrapPolicy.BATCH, batched=True) == ["a"]

    def test_classification_policy(self):
        flat = [{"label": "A"}]
        nested = [[{"label": "A"}, {"label": "B"}]]
        assert unwrap(flat, UnwrapPolicy.CLASSIFICATION, batched=False, topk=1) == flat
        assert unwrap(nested, UnwrapPolicy.CLASSIFICATION, batched=False, topk=2) == nested[0]
        assert unwrap(nested, UnwrapPolicy.CLASSIFICATION, batched=True, topk=2) == nested

    def test_first_if_topk_1_ignores_cardinality(self):
        answers = [{"answer": "x"}, {"answer": "y"}]
        assert unwrap(answers, UnwrapPolicy.FIRST_IF_TOPK_1, batched=True, topk=1) == answers[0]
        assert unwrap(answers, UnwrapPolicy.FIRST_IF_TOPK_1, batched=False, topk=2) == answers

    def test_single_prompt_and_never_policies(self):
        assert unwrap([["a"]], UnwrapPolicy.SINGLE_PROMPT, batched=False) == ["a"]
        assert unwrap([["a"]], UnwrapPolicy.SINGLE_PROMPT, batched=True) == [["a"]]
        assert unwrap(["a"], UnwrapPolicy.NEVER, batched=False) == ["a"]


class TestVisionDecoders:
    """Tests for segmentation and detection post-processing"""

    def test_probes_post_processors_in_priority_order(self):
        # Arrange
        panoptic, instance = Mock(), Mock()
        both = SimpleNamespace(post_process_panoptic_segmentation=panoptic,
                               post_process_instance_segmentation=instance)
        instance_only = SimpleNamespace(post_process_instance_segmentation=instance)

        # Act / Assert
        assert select_post_processor(both, None) == ("panoptic", panoptic)
        assert select_post_processor(instance_only, None) == ("instance", instance)
        assert select_post_processor(SimpleNamespace(), None) == (None, None)

    def test_explicit_subtask_maps_directly(self):
        # Arrange
        instance = Mock()
        extractor = SimpleNamespace(post_process_instance_segmentation=instance)

        # Act / Assert
        assert select_post_processor(extractor, "instance") == ("instance", instance)
        assert select_post_processor(extractor, "panoptic") == ("panoptic", None)

    def test_semantic_and_unknown_subtasks_are_rejected(self):
        with pytest.raises(UnsupportedSubtaskError, match="semantic segmentation not yet supported"):
            ensure_supported_subtask("semantic", Mock())
        with pytest.raises(UnsupportedSubtaskError, match="Subtask foo not supported"):
            ensure_supported_subtask("foo", None)
        with pytest.raises(UnsupportedSubtaskError):
            ensure_supported_subtask("panoptic", None)

    def test_decode_segments_builds_binary_masks(self):
        # Arrange
        processed = {
            "segmentation": np.array([[1, 1, 2], [2, 2, 0]]),
            "segments_info": [
                {"id": 1, "label_id": 0, "score": 0.9},
                {"id": 2, "label_id": 1, "score": 0.8},
            ],
        }

        # Act
        segments = decode_segments(processed, {0: "cat", 1: "dog"})

        # Assert
        assert [(s["id"], s["label"]) for s in segments] == [(1, "cat"), (2, "dog")]
        assert segments[0]["mask"].size == (3, 2)
        assert np.array(segments[0]["mask"]).tolist() == [[255, 255, 0], [0, 0, 0]]
        assert np.array(segments[1]["mask"]).tolist() == [[0, 0, 255], [255, 255, 0]]

    def test_single_image_check(self):
        check_single_image(["img"], True, "Object detection")
        check_single_image("img", False, "Object detection")
        with pytest.raises(ValidationError, match="batch size of 1"):
            check_single_image(["a", "b"], True, "Object detection")

    def test_label_detections(self):
        # Act
        detections = label_detections([{"boxes": [[0, 0, 1, 1]], "classes": [1], "scores": [0.9]}],
                                      {0: "cat", 1: "dog"})

        # Assert
        assert detections[0]["labels"] == ["dog"]
