import pytest
from pydantic import ValidationError as PydanticValidationError

from blueprint.error.exceptions import ValidationError
from blueprint.templates.model import Template, TemplateType, Variable, VariableRole, VariableType


def test_template_type_folders():
    """Every template type maps to its folder."""
    assert TemplateType.PROJECT.folder == "projects"
    assert TemplateType.FEATURE.folder == "features"
    assert TemplateType.COMPONENT.folder == "components"


def test_template_type_from_value():
    assert TemplateType.from_value("Feature") is TemplateType.FEATURE
    assert TemplateType.from_value(TemplateType.COMPONENT) is TemplateType.COMPONENT

    with pytest.raises(ValidationError, match="unknown template type 'library'"):
        TemplateType.from_value("library")


def test_template_defaults_and_coercion():
    """Unquoted versions and empty YAML keys are accepted."""
    template = Template.model_validate({
        "name": "api",
        "type": "feature",
        "version": 1.0,
        "description": None,
        "variables": None,
        "files": [{"src": "a", "dest": "b"}],
    })
    assert template.version == "1.0"
    assert template.description == ""
    assert template.variables == []
    assert template.includes == []
    assert template.identity == "api"


def test_template_rejects_duplicate_variables():
    with pytest.raises(PydanticValidationError, match="duplicate variable 'name'"):
        Template.model_validate({
            "name": "api",
            "type": "feature",
            "version": "1",
            "variables": [
                {"name": "name", "type": "string"},
                {"name": "name", "type": "string"},
            ],
        })


@pytest.mark.parametrize("dep", ["", "@1.0.0"])
def test_template_rejects_invalid_dependencies(dep):
    with pytest.raises(PydanticValidationError):
        Template.model_validate({"name": "api", "type": "feature", "version": "1", "dependencies": [dep]})


def test_variable_select_requires_options():
    with pytest.raises(PydanticValidationError, match="requires options"):
        Variable(name="db", type=VariableType.SELECT)


@pytest.mark.parametrize("var_type,default", [
    ("string", 3),
    ("int", True),
    ("int", "3"),
    ("bool", "yes"),
])
def test_variable_default_must_match_type(var_type, default):
    with pytest.raises(PydanticValidationError, match="default of variable"):
        Variable(name="v", type=var_type, default=default)


def test_variable_select_default_must_be_an_option():
    Variable(name="db", type="select", options=["pg", "mysql"], default="pg")
    Variable(name="dbs", type="multiselect", options=["pg", "mysql"], default=["mysql"])

    with pytest.raises(PydanticValidationError):
        Variable(name="db", type="select", options=["pg"], default="sqlite")
    with pytest.raises(PydanticValidationError):
        Variable(name="dbs", type="multiselect", options=["pg"], default=["pg", "sqlite"])


def test_variable_role():
    variable = Variable(name="project_name", type="string", role="project_name")
    assert variable.role is VariableRole.PROJECT_NAME


def test_location_is_not_serialized():
    template = Template(name="api", type="feature", version="1", location="features/api")
    assert "location" not in template.model_dump()
    assert template.identity == "features/api"
