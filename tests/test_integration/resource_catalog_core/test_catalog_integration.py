"""Integration tests for the catalog startup pipeline."""

import json
import os
import tempfile

import pytest
from openpyxl import Workbook

from resource_catalog_core.bootstrap import bootstrap_catalog
from resource_catalog_core.config import load_catalog_config
from resource_catalog_core.core import CatalogState
from resource_catalog_core.exceptions import (
    AmbiguousResourceError,
    KeyTypeMismatchError,
    RecordNotFoundError,
    ResourceReleasedError,
)
from sample_resources.consumers import Shop, SkillBook, StringKeyedShop
from sample_resources.items import Item
from sample_resources.skills import Skill


def write_config(temp_dir, recycle=True):
    config_file = os.path.join(temp_dir, "catalog.yaml")
    with open(config_file, "w") as f:
        f.write(f"""
catalog:
  search_roots:
    - data
  scan_packages:
    - sample_resources
  recycle: {str(recycle).lower()}
""")
    return config_file


class TestCatalogIntegration:
    """Integration tests for bootstrap_catalog."""

    def test_item_scenario(self):
        """Test the Item table loads from data/Item.csv and serves lookups."""
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = os.path.join(temp_dir, "data")
            os.makedirs(data_dir)
            with open(os.path.join(data_dir, "Item.csv"), "w") as f:
                f.write('id,name\n1,"Sword"\n2,"Shield"\n')

            config = load_catalog_config(write_config(temp_dir, recycle=False))
            catalog = bootstrap_catalog(config, record_types=[Item])

            table = catalog.get(Item)
            assert len(table) == 2
            assert table.lookup(1).name == "Sword"
            with pytest.raises(RecordNotFoundError):
                table.lookup(3)

    def test_ambiguous_scenario(self):
        """Test two Item.csv files under one root abort startup."""
        with tempfile.TemporaryDirectory() as temp_dir:
            paths = []
            for sub in ("a", "b"):
                folder = os.path.join(temp_dir, "data", sub)
                os.makedirs(folder)
                paths.append(os.path.join(folder, "Item.csv"))
                with open(paths[-1], "w") as f:
                    f.write("id,name\n1,Sword\n")

            config = load_catalog_config(write_config(temp_dir))

            with pytest.raises(AmbiguousResourceError) as exc_info:
                bootstrap_catalog(config, record_types=[Item])

            message = str(exc_info.value)
            for path in paths:
                assert os.path.realpath(path) in message

    def test_scan_bind_and_recycle(self):
        """Test the full pipeline with scanning, mixed formats and recycling."""
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = os.path.join(temp_dir, "data")
            os.makedirs(os.path.join(data_dir, "items"))

            workbook = Workbook()
            sheet = workbook.active
            sheet.append(["id", "name", "price"])
            sheet.append([1, "Sword", 12.5])
            sheet.append([2, "Shield", 8])
            workbook.save(os.path.join(data_dir, "items", "Item.xlsx"))

            with open(os.path.join(data_dir, "Skill.json"), "w") as f:
                json.dump([{"code": "fire", "power": 10}], f)

            config = load_catalog_config(write_config(temp_dir))
            shop = Shop()

            catalog = bootstrap_catalog(config, consumers=[shop])

            assert catalog.state is CatalogState.PARTIALLY_RECYCLED
            assert shop.items.lookup(1).price == 12.5
            assert shop.items.lookup(2).price == 8.0
            assert catalog.get(Item) is shop.items
            with pytest.raises(ResourceReleasedError):
                catalog.get(Skill)

    def test_recycling_disabled_keeps_every_table(self):
        """Test every table stays queryable when recycling is off."""
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = os.path.join(temp_dir, "data")
            os.makedirs(data_dir)
            with open(os.path.join(data_dir, "Item.csv"), "w") as f:
                f.write("id,name\n1,Sword\n")
            with open(os.path.join(data_dir, "Skill.csv"), "w") as f:
                f.write("code,power,passive\nfire,10,true\n")

            config = load_catalog_config(write_config(temp_dir, recycle=False))
            book = SkillBook()

            catalog = bootstrap_catalog(config, consumers=[book])

            assert catalog.state is CatalogState.LOADED
            assert book.skills.lookup("fire").passive is True
            assert catalog.get(Item).lookup(1).name == "Sword"

    def test_key_type_mismatch_aborts_startup(self):
        """Test a consumer with the wrong key type fails startup."""
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = os.path.join(temp_dir, "data")
            os.makedirs(data_dir)
            with open(os.path.join(data_dir, "Item.csv"), "w") as f:
                f.write("id,name\n1,Sword\n")

            config = load_catalog_config(write_config(temp_dir))

            with pytest.raises(KeyTypeMismatchError):
                bootstrap_catalog(
                    config, consumers=[StringKeyedShop()], record_types=[Item]
                )
