"""Example usage of objtools object masks."""

import json
from objtools import (
    ObjectMask,
    InvalidArgumentError,
    mask_from_field_list,
    union,
    intersect,
    subtract,
    invert,
)

# A document as it might come back from an API
user = {
    "id": "u-100",
    "name": "Ada",
    "email": "ada@example.com",
    "password": "hunter2",
    "profile": {"bio": "Engineer", "avatar": "a.png", "internalScore": 0.92},
    "addresses": [
        {"city": "London", "zip": "N1", "geo": {"lat": 51.5, "lng": -0.1}},
        {"city": "Paris", "zip": "75001", "geo": {"lat": 48.8, "lng": 2.3}}
    ]
}

# What anonymous callers may see
public_mask = ObjectMask({
    "id": True,
    "name": True,
    "profile": {"bio": True, "avatar": True},
    "addresses": [{"city": True}]  # Shorthand for {"_": {"city": True}}
})

# What the account owner may see: everything except the password
owner_mask = ObjectMask({"_": True, "password": False})


def main():
    print("=" * 60)
    print("objtools Object Masks - Example")
    print("=" * 60)

    print("\nPublic mask tree:")
    print(json.dumps(public_mask.to_tree(), indent=2))

    print("\nFiltered for the public:")
    print(json.dumps(public_mask.filter_object(user), indent=2))

    print("\nFields removed for the public:")
    for path in public_mask.get_masked_out_fields(user):
        print(f"  - {path}")

    print(f"\nOwner may read addresses.1.geo.lat: {owner_mask.check_path('addresses.1.geo.lat')}")
    print(f"Owner may read password: {owner_mask.check_path('password')}")


def example_algebra():
    """Example that combines masks."""
    print("\n" + "=" * 60)
    print("Mask Algebra")
    print("=" * 60)

    support_mask = mask_from_field_list(["email", "addresses"])

    combined = union(public_mask, support_mask)
    print(f"\nPublic + support: {combined.to_tree()}")

    common = intersect(owner_mask, combined)
    print(f"Owner & (public + support): {common.to_tree()}")

    without_profile = subtract(combined, {"profile": True})
    print(f"Public + support - profile: {without_profile.to_tree()}")

    print(f"Inverse of public: {invert(public_mask).to_tree()}")

    try:
        subtract(owner_mask, {"profile": {"bio": True}})
    except InvalidArgumentError as e:
        print(f"\nCannot subtract: {e.message} (at {e.details.get('path')})")


def example_mutators():
    """Example that edits a mask in place."""
    print("\n" + "=" * 60)
    print("Editing Masks")
    print("=" * 60)

    mask = public_mask.copy()
    mask.add_field("addresses._.geo")
    mask.remove_field("profile.avatar")
    print(f"\nEdited mask: {mask.to_tree()}")

    dotted = {"name": "Ada", "profile.avatar": "a.png", "addresses.0.city": "London"}
    print(f"Dotted filter: {mask.filter_dotted_object(dotted)}")
    print(f"Dotted fields removed: {mask.get_dotted_masked_out_fields(dotted)}")


if __name__ == "__main__":
    main()
    example_algebra()
    example_mutators()
