"""Catalog of tracked JavaScript features and their BCD lookup keys."""

from __future__ import annotations

from enum import Enum


class Feature(Enum):
    OPTIONAL_CHAINING = "OptionalChaining"
    NULLISH_COALESCING = "NullishCoalescing"
    PRIVATE_FIELD = "PrivateField"
    PRIVATE_METHOD = "PrivateMethod"
    # ES2022+
    TOP_LEVEL_AWAIT = "TopLevelAwait"
    CLASS_STATIC_BLOCK = "ClassStaticBlock"
    # ES2021
    LOGICAL_ASSIGNMENT = "LogicalAssignment"
    NUMERIC_SEPARATOR = "NumericSeparator"
    # ES2020
    BIG_INT = "BigInt"
    DYNAMIC_IMPORT = "DynamicImport"
    # ES2019
    OPTIONAL_CATCH_BINDING = "OptionalCatchBinding"
    # ES2018
    ASYNC_ITERATION = "AsyncIteration"
    REST_SPREAD = "RestSpread"
    # ES2017
    AWAIT = "Await"
    DECORATOR = "Decorator"
    # Web APIs
    SERVICE_WORKER = "ServiceWorker"
    PERFORMANCE_NOW = "PerformanceNow"
    REQUEST_IDLE_CALLBACK = "RequestIdleCallback"
    # Typed arrays
    TYPED_ARRAY = "TypedArray"
    INT8_ARRAY = "Int8Array"
    UINT8_ARRAY = "Uint8Array"
    INT16_ARRAY = "Int16Array"
    UINT16_ARRAY = "Uint16Array"
    INT32_ARRAY = "Int32Array"
    UINT32_ARRAY = "Uint32Array"
    FLOAT32_ARRAY = "Float32Array"
    FLOAT64_ARRAY = "Float64Array"

    @property
    def key(self) -> str:
        """Dotted path of this feature in browser-compat-data."""
        return LOOKUP_KEYS[self]

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_key(cls, key: str) -> Feature:
        try:
            return _BY_KEY[key]
        except KeyError:
            raise ValueError(f"Unknown lookup key: {key}") from None


LOOKUP_KEYS: dict[Feature, str] = {
    Feature.OPTIONAL_CHAINING: "javascript.operators.optional_chaining",
    Feature.NULLISH_COALESCING: "javascript.operators.nullish_coalescing",
    Feature.PRIVATE_FIELD: "javascript.classes.private_class_fields",
    Feature.PRIVATE_METHOD: "javascript.classes.private_class_methods",
    Feature.TOP_LEVEL_AWAIT: "javascript.statements.top_level_await",
    Feature.CLASS_STATIC_BLOCK: "javascript.classes.class_static_block",
    Feature.LOGICAL_ASSIGNMENT: "javascript.operators.logical_assignment_operators",
    Feature.NUMERIC_SEPARATOR: "javascript.operators.numeric_separators",
    Feature.BIG_INT: "javascript.builtins.bigint",
    Feature.DYNAMIC_IMPORT: "javascript.operators.import",
    Feature.OPTIONAL_CATCH_BINDING: "javascript.statements.try_catch.optional_catch_binding",
    Feature.ASYNC_ITERATION: "javascript.builtins.AsyncIterator",
    Feature.REST_SPREAD: "javascript.operators.spread",
    Feature.AWAIT: "javascript.operators.await",
    Feature.DECORATOR: "javascript.builtins.decorators",
    Feature.SERVICE_WORKER: "api.Navigator.serviceWorker",
    Feature.PERFORMANCE_NOW: "api.Performance.now",
    Feature.REQUEST_IDLE_CALLBACK: "api.Window.requestIdleCallback",
    Feature.TYPED_ARRAY: "javascript.builtins.TypedArray",
    Feature.INT8_ARRAY: "javascript.builtins.Int8Array",
    Feature.UINT8_ARRAY: "javascript.builtins.Uint8Array",
    Feature.INT16_ARRAY: "javascript.builtins.Int16Array",
    Feature.UINT16_ARRAY: "javascript.builtins.Uint16Array",
    Feature.INT32_ARRAY: "javascript.builtins.Int32Array",
    Feature.UINT32_ARRAY: "javascript.builtins.Uint32Array",
    Feature.FLOAT32_ARRAY: "javascript.builtins.Float32Array",
    Feature.FLOAT64_ARRAY: "javascript.builtins.Float64Array",
}

_BY_KEY: dict[str, Feature] = {key: feature for feature, key in LOOKUP_KEYS.items()}
