from __future__ import annotations

import json
import unittest

from llm_synthesis.adapter import BaseLLMAdapter, MockLLMAdapter
from llm_synthesis.generator import LLMContentGenerator
from llm_synthesis.prompt_builder import ContentPromptBuilder
from llm_synthesis.retry import ContentRetryExhaustedError, generate_with_retry
from llm_synthesis.schema import ContentGenerationRequest, FieldSpec
from llm_synthesis.validator import ContentValidationError, validate_generated_content


def _request(*specs: FieldSpec) -> ContentGenerationRequest:
    return ContentGenerationRequest(
        existing_fields={"title": "Linen Shirt", "brand": "Acme"},
        missing_fields=list(specs),
        marketplace="namshi",
    )


class _ScriptedAdapter(BaseLLMAdapter):
    def __init__(self, responses: list[str]) -> None:
        self._responses = list(responses)
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        return self._responses.pop(0)


class TestValidateGeneratedContent(unittest.TestCase):
    def test_strips_markdown_fences(self) -> None:
        raw = '```json\n{"description": "Breathable linen."}\n```'
        values = validate_generated_content(raw, _request(FieldSpec(name="description")))
        self.assertEqual(values, {"description": "Breathable linen."})

    def test_coerces_types_and_truncates(self) -> None:
        request = _request(
            FieldSpec(name="description", max_length=5),
            FieldSpec(name="keywords", type="array"),
            FieldSpec(name="weight", type="number"),
        )
        raw = json.dumps({"description": "Breathable", "keywords": "linen, summer", "weight": "1.5"})

        values = validate_generated_content(raw, request)

        self.assertEqual(values, {"description": "Breat", "keywords": ["linen", "summer"], "weight": 1.5})

    def test_drops_values_outside_enum_but_keeps_others(self) -> None:
        request = _request(FieldSpec(name="gender", enum=["Men", "Women"]), FieldSpec(name="description"))
        values = validate_generated_content(json.dumps({"gender": "Unisex", "description": "Nice"}), request)
        self.assertEqual(values, {"description": "Nice"})

    def test_invalid_json_is_json_parse_stage(self) -> None:
        with self.assertRaises(ContentValidationError) as ctx:
            validate_generated_content("not json", _request(FieldSpec(name="description")))
        self.assertEqual(ctx.exception.stage, "json_parse")

    def test_non_object_is_schema_stage(self) -> None:
        with self.assertRaises(ContentValidationError) as ctx:
            validate_generated_content("[1, 2]", _request(FieldSpec(name="description")))
        self.assertEqual(ctx.exception.stage, "schema")

    def test_no_requested_fields_is_empty_stage(self) -> None:
        with self.assertRaises(ContentValidationError) as ctx:
            validate_generated_content('{"other": "x"}', _request(FieldSpec(name="description")))
        self.assertEqual(ctx.exception.stage, "empty")


class TestGenerateWithRetry(unittest.TestCase):
    def test_retries_formatting_errors(self) -> None:
        adapter = _ScriptedAdapter(["oops", '{"description": "Second time lucky."}'])
        values = generate_with_retry(adapter, "prompt", _request(FieldSpec(name="description")), max_retries=1)
        self.assertEqual(values, {"description": "Second time lucky."})
        self.assertEqual(adapter.calls, 2)

    def test_exhausted_retries_raise_with_history(self) -> None:
        adapter = _ScriptedAdapter(["oops", "still oops", "never reached"])
        with self.assertRaises(ContentRetryExhaustedError) as ctx:
            generate_with_retry(adapter, "prompt", _request(FieldSpec(name="description")), max_retries=1)
        self.assertEqual(ctx.exception.attempts, 2)
        self.assertEqual(len(ctx.exception.history), 2)

    def test_empty_stage_is_not_retried(self) -> None:
        adapter = _ScriptedAdapter(['{"other": 1}', '{"description": "late"}'])
        with self.assertRaises(ContentValidationError):
            generate_with_retry(adapter, "prompt", _request(FieldSpec(name="description")), max_retries=3)
        self.assertEqual(adapter.calls, 1)


class TestLLMContentGenerator(unittest.TestCase):
    def test_successful_generation(self) -> None:
        generator = LLMContentGenerator(MockLLMAdapter())
        result = generator.generate(_request(FieldSpec(name="description"), FieldSpec(name="keywords")))
        self.assertTrue(result.ok)
        self.assertEqual(result.source, "llm")
        self.assertEqual(result.values["keywords"], "mock, test, product")

    def test_failure_is_reported_not_raised(self) -> None:
        generator = LLMContentGenerator(_ScriptedAdapter(["nope", "nope"]), max_retries=1)
        result = generator.generate(_request(FieldSpec(name="description")))
        self.assertFalse(result.ok)
        self.assertEqual(result.values, {})
        self.assertIn("after 2 attempt(s)", result.error)

    def test_no_missing_fields_skips_the_call(self) -> None:
        adapter = MockLLMAdapter()
        result = LLMContentGenerator(adapter).generate(_request())
        self.assertTrue(result.ok)
        self.assertEqual(adapter.prompts, [])


class TestContentPromptBuilder(unittest.TestCase):
    def test_prompt_lists_existing_data_and_field_constraints(self) -> None:
        prompt = ContentPromptBuilder().build_prompt(
            _request(FieldSpec(name="gender", enum=["Men", "Women"], max_length=10))
        )
        self.assertIn("for the namshi marketplace", prompt)
        self.assertIn('"brand": "Acme"', prompt)
        self.assertIn("- gender (string, required, max 10 characters, one of: Men, Women)", prompt)
