"""Info, license, contact and tags."""

from __future__ import annotations

from typing import Any

from oas_audit.core.context import RunState
from oas_audit.core.refs import validate_url
from oas_audit.model import ObjectKind
from oas_audit.validators.common import (
    Servers,
    check_external_docs,
    require_mapping,
    require_type,
    restrict_keys,
)

CONTACT_KEYS = ("name", "url", "email")


def check_license(license_: Any, servers: Servers, state: RunState) -> None:
    with state.at("license"):
        require_mapping(license_, state, "license")
        state.require("name" in license_, "license must have a name")
        state.require(isinstance(license_["name"], str), "license name must be a string")
        if "url" in license_:
            validate_url(license_["url"], servers, state, "license.url")
        state.lint(ObjectKind.LICENSE, license_, "license")


def check_contact(contact: Any, servers: Servers, state: RunState) -> None:
    with state.at("contact"):
        require_mapping(contact, state, "contact")
        require_type(contact, "name", str, state)
        if "url" in contact:
            validate_url(contact["url"], servers, state, "contact.url")
        if "email" in contact:
            email = contact["email"]
            state.require(isinstance(email, str), "Contact email must be a string")
            state.require("@" in email and "." in email, "Contact email must be a valid email address")
        state.lint(ObjectKind.CONTACT, contact, "contact")
        restrict_keys(contact, CONTACT_KEYS, state, "contact object")


def check_info(info: Any, servers: Servers, state: RunState) -> None:
    with state.at("info"):
        require_mapping(info, state, "info")
        state.require("title" in info, "info must have a title")
        state.require(isinstance(info["title"], str), "title should be of type string")
        state.require("version" in info, "info must have a version")
        state.require(isinstance(info["version"], str), "version should be of type string")
        if "license" in info:
            check_license(info["license"], servers, state)
        if "termsOfService" in info:
            validate_url(info["termsOfService"], servers, state, "termsOfService")
        if "contact" in info:
            check_contact(info["contact"], servers, state)
        require_type(info, "description", str, state)
        state.lint(ObjectKind.INFO, info, "info")


def check_tags(tags: Any, servers: Servers, state: RunState) -> None:
    with state.at("tags"):
        state.require(isinstance(tags, list), "tags must be an array")
        for i, tag in enumerate(tags):
            with state.at(i):
                require_mapping(tag, state, "tag")
                state.require("name" in tag, "tag must have a name")
                state.require(isinstance(tag["name"], str), "tag name must be a string")
                state.claim_tag_name(tag["name"])
                if "externalDocs" in tag:
                    check_external_docs(tag["externalDocs"], servers, state)
                require_type(tag, "description", str, state)
                state.lint(ObjectKind.TAG, tag, tag["name"])
