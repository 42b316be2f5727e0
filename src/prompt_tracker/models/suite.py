"""Suite file and runtime settings models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prompt_tracker.models.test_case import Test, Testable


class Suite(BaseModel):
    """A testable and the tests to run against its responses.

    Loaded from a YAML suite file by ``ConfigLoader.load_suite``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Suite name")
    description: str | None = Field(None, description="What the suite covers")
    testable: Testable = Field(..., description="Prompt version or assistant")
    tests: list[Test] = Field(default_factory=list, description="Tests to run")

    @field_validator("tests")
    @classmethod
    def validate_unique_test_names(cls, tests: list[Test]) -> list[Test]:
        """Reject duplicate test names.

        Raises:
            ValueError: If two tests share a name
        """
        seen: set[str] = set()
        for test in tests:
            if test.name in seen:
                raise ValueError(f"Duplicate test name '{test.name}'")
            seen.add(test.name)
        return tests

    def get_test(self, name: str) -> Test | None:
        return next((test for test in self.tests if test.name == name), None)


class RuntimeSettings(BaseModel):
    """Settings resolved from CLI flags, environment and defaults."""

    model_config = ConfigDict(extra="forbid")

    verbose: bool = Field(False, description="Enable debug logging")
    quiet: bool = Field(False, description="Only log warnings and errors")
    judge_model: str = Field(..., min_length=1, description="Default judge model")
