"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest

from wallaproxy import cli, config
from wallaproxy.exceptions import WallaproxyRequestError


@pytest.fixture(autouse=True)
def no_proxy():
    with patch.object(config, "PROXY_URL", ""):
        yield


@pytest.fixture
def mock_client():
    with patch("wallaproxy.cli.WallapopClient") as client_cls:
        yield client_cls.return_value


class TestHelp:
    @pytest.mark.parametrize("argv", [["--help"], ["help"], []])
    def test_prints_usage(self, capsys, argv):
        assert cli.main(argv) == 0
        out = capsys.readouterr().out
        assert "Usage:" in out
        for command in ["search", "item", "categories", "inbox", "serve"]:
            assert command in out

    def test_help_after_command(self, capsys):
        assert cli.main(["search", "--help"]) == 0
        assert "Usage:" in capsys.readouterr().out


class TestUnknownCommand:
    def test_errors(self, capsys):
        assert cli.main(["foobar"]) == 1
        assert "Unknown command: foobar" in capsys.readouterr().err

    def test_suggests_close_command(self, capsys):
        assert cli.main(["serach"]) == 1
        assert "Did you mean 'search'?" in capsys.readouterr().err

    def test_suggest_command(self):
        assert cli.suggest_command("categorie") == "categories"
        assert cli.suggest_command("zzzzzzzzzzzz") is None


class TestMissingArguments:
    @pytest.mark.parametrize(
        "command, message",
        [
            ("item", "item ID required"),
            ("user", "user ID required"),
            ("user-stats", "user ID required"),
            ("user-items", "user ID required"),
            ("item-id", "URL required"),
            ("inbox", "bearer token required"),
        ],
    )
    def test_errors(self, capsys, mock_client, command, message):
        assert cli.main([command]) == 1
        assert f"Error: {message}" in capsys.readouterr().err

    def test_search_without_keywords(self, capsys, mock_client):
        assert cli.main(["search"]) == 1
        assert "keywords" in capsys.readouterr().err
        mock_client.search.assert_not_called()


class TestCurlFlag:
    def test_search(self, capsys, mock_client):
        assert cli.main(["search", "iphone", "--curl"]) == 0
        out = capsys.readouterr().out
        assert "curl" in out
        assert "Host: api.wallapop.com" in out
        assert "X-DeviceOS: 0" in out
        assert "/api/v3/search" in out
        assert "keywords=iphone" in out
        mock_client.search.assert_not_called()

    def test_search_with_filters(self, capsys):
        assert cli.main(["search", "phone", "--min-price", "100", "--max-price", "500", "--curl"]) == 0
        out = capsys.readouterr().out
        assert "min_sale_price=100" in out
        assert "max_sale_price=500" in out

    def test_negative_longitude(self, capsys):
        assert cli.main(["search", "bike", "--lat", "40.42", "--lon", "-3.7", "--curl"]) == 0
        out = capsys.readouterr().out
        assert "latitude=40.42" in out
        assert "longitude=-3.7" in out

    @pytest.mark.parametrize(
        "argv, fragment",
        [
            (["item", "abc123"], "/api/v3/items/abc123"),
            (["user", "u1"], "/api/v3/users/u1"),
            (["user-stats", "u1"], "/api/v3/users/u1/stats"),
            (["user-items", "u1", "--limit", "5"], "/api/v3/users/u1/items?limit=5"),
            (["categories"], "/api/v3/categories"),
            (["inbox", "my-token"], "Bearer my-token"),
            (["item-id", "consola-123"], "https://es.wallapop.com/item/consola-123"),
        ],
    )
    def test_other_commands(self, capsys, argv, fragment):
        assert cli.main(argv + ["--curl"]) == 0
        assert fragment in capsys.readouterr().out


class TestCommands:
    def test_search_output(self, capsys, mock_client):
        mock_client.search.return_value = {"data": {"section": {"payload": {"items": []}}}}

        assert cli.main(["search", "iphone 13", "--min-price", "200", "--order", "newest"]) == 0

        params = mock_client.search.call_args.args[0]
        assert params["keywords"] == "iphone 13"
        assert params["min_sale_price"] == 200
        assert params["order_by"] == "newest"
        out = capsys.readouterr().out
        assert json.loads(out) == {"data": {"section": {"payload": {"items": []}}}}
        assert "\n  " in out

    def test_json_flag_is_compact(self, capsys, mock_client):
        mock_client.get_categories.return_value = {"categories": []}

        assert cli.main(["categories", "--json"]) == 0

        assert capsys.readouterr().out == '{"categories": []}\n'

    def test_continental_filter(self, capsys, mock_client):
        mock_client.search.return_value = {
            "data": {
                "section": {
                    "payload": {
                        "items": [
                            {"id": "1", "location": {"postal_code": "08001"}},
                            {"id": "2", "location": {"postal_code": "07001"}},
                        ]
                    }
                }
            }
        }

        assert cli.main(["search", "sofa", "--continental", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [item["id"] for item in data["data"]["section"]["payload"]["items"]] == ["1"]

    def test_item_id(self, capsys, mock_client):
        mock_client.extract_item_id.return_value = "4z48gq2wl8jy"
        assert cli.main(["item-id", "https://es.wallapop.com/item/x", "--json"]) == 0
        assert json.loads(capsys.readouterr().out) == {"itemId": "4z48gq2wl8jy"}

    def test_inbox(self, mock_client):
        mock_client.get_inbox.return_value = {}
        assert cli.main(["inbox", "tok", "--page-size", "50", "--max-messages", "3"]) == 0
        mock_client.get_inbox.assert_called_once_with("tok", page_size=50, max_messages=3)

    def test_invalid_number(self, capsys, mock_client):
        assert cli.main(["search", "tv", "--min-price", "cheap"]) == 1
        assert "Invalid number for --min-price" in capsys.readouterr().err

    def test_upstream_error(self, capsys, mock_client):
        mock_client.get_item.side_effect = WallaproxyRequestError("Not Found", status_code=404)
        assert cli.main(["item", "nope"]) == 1
        assert "Error (404): Not Found" in capsys.readouterr().err


class TestCurlMd:
    def test_stdout(self, capsys):
        assert cli.main(["curl-md"]) == 0
        assert capsys.readouterr().out.startswith("# Wallapop API")

    def test_output_file(self, tmp_path):
        target = tmp_path / "CURL.md"
        assert cli.main(["curl-md", "--output", str(target)]) == 0
        assert "/api/v3/categories" in target.read_text(encoding="utf-8")


class TestServe:
    def test_starts_server_on_port(self):
        with patch("wallaproxy.server.run_server") as run_server:
            assert cli.main(["serve", "--port", "5050"]) == 0
        run_server.assert_called_once_with(port=5050)


class TestOptionErrors:
    def test_unknown_option_is_ignored(self, caplog, mock_client):
        mock_client.get_categories.return_value = {"categories": []}
        assert cli.main(["categories", "--pretty"]) == 0
        mock_client.get_categories.assert_called_once_with()
        assert "Ignoring unknown options: --pretty" in caplog.text

    def test_missing_option_value(self, capsys, mock_client):
        assert cli.main(["search", "tv", "--limit"]) == 1
        assert "Error:" in capsys.readouterr().err
        mock_client.search.assert_not_called()

    def test_fractional_page_size(self, capsys, mock_client):
        assert cli.main(["inbox", "tok", "--page-size", "1.5"]) == 1
        assert "Expected an integer for --page-size" in capsys.readouterr().err
        mock_client.get_inbox.assert_not_called()

    def test_fractional_limit(self, capsys, mock_client):
        assert cli.main(["search", "tv", "--limit", "20.5"]) == 1
        assert "Expected an integer for --limit" in capsys.readouterr().err

    def test_fractional_port(self, capsys):
        with patch("wallaproxy.server.run_server") as run_server:
            assert cli.main(["serve", "--port", "80.5"]) == 1
        run_server.assert_not_called()
        assert "Expected an integer for --port" in capsys.readouterr().err
