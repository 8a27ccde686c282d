"""Flask CLI commands."""


class TestCommands:
    def test_init_db_on_current_schema(self, app):
        result = app.test_cli_runner().invoke(args=["init-db"])

        assert result.exit_code == 0, result.output
        assert "Tables created: none" in result.output
        assert "Default categories backfilled: 0" in result.output

    def test_check_db_lists_users(self, app, make_user):
        make_user("Alice", "alice@example.com")

        result = app.test_cli_runner().invoke(args=["check-db"])

        assert result.exit_code == 0, result.output
        assert "Users in database: 1" in result.output
        assert "alice@example.com" in result.output
        assert "categories=1" in result.output
        assert "cards=0" in result.output
