from trunk_api.app.startup_banner import VERSION, build_banner_lines, print_startup_banner


def test_banner_lists_mounted_capabilities():
    lines = build_banner_lines(
        environment="production",
        port=3005,
        mounted={"export_csv": "/api/export"},
        labels={"export_csv": "Export CSV"},
    )

    assert lines[0] == "Trunk-Based Development Demo API"
    assert f"Version    : {VERSION}" in lines
    assert "Environment: PRODUCTION" in lines
    assert "URL        : http://localhost:3005" in lines
    assert "  - /api/export/* (Export CSV) ✓" in lines
    assert not any("/api/search" in line for line in lines)


def test_print_startup_banner(capsys):
    print_startup_banner(environment="stage", port=3005, mounted={"advanced_search": "/api/search"})
    out = capsys.readouterr().out
    assert "Trunk-Based Development Demo API" in out
    assert "/api/search/* (advanced_search) ✓" in out
