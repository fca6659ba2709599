import os

from phone_claim.core.settings import settings
from phone_claim.scripts import migrate


def test_build_config_points_at_project_migrations() -> None:
    cfg = migrate.build_config()
    assert cfg.get_main_option("script_location") == migrate.MIGRATIONS_DIR
    assert cfg.get_main_option("sqlalchemy.url") == settings.database_url_sync
    assert os.path.isfile(os.path.join(migrate.MIGRATIONS_DIR, "env.py"))


def test_main_upgrades_to_head(mocker) -> None:
    upgrade = mocker.patch("phone_claim.scripts.migrate.command.upgrade")
    migrate.main()
    upgrade.assert_called_once()
    assert upgrade.call_args.args[1] == "head"
