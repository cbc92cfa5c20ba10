from erp.services.registry import get_services


def test_products_import_command(app, db_session, tmp_path):
    csv_path = tmp_path / "products.csv"
    csv_path.write_text(
        "name,code,fabricType,size,color,purchaseCost,minSalePrice,maxSalePrice,currentPrice,stock,minStock,supplier,batchInfo\n"
        "Lawn Suit,LS-1,Lawn,M,Red,1200,1500,2000,1800,12,3,Gul Ahmed,B-7\n",
        encoding="utf-8",
    )

    result = app.test_cli_runner().invoke(args=["products", "import", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Imported 1 product(s)" in result.output
    assert [p["code"] for p in get_services().products.list_products()] == ["LS-1"]


def test_products_import_reports_missing_columns(app, db_session, tmp_path):
    csv_path = tmp_path / "broken.csv"
    csv_path.write_text("name,code\nA,B\n", encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["products", "import", str(csv_path)])

    assert result.exit_code != 0
    assert "CSV is missing columns" in result.output


def test_init_db_is_idempotent(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init-db"])
    assert result.exit_code == 0
    assert "Database tables ready" in result.output
