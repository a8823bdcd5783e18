from app.analytics.csv_import import (
    JOB_IMPORT_HEADERS,
    clean_csv_headers,
    parse_rows,
    preview,
    read_rows,
    split_records,
)


def test_quoted_fields_keep_commas_and_escaped_quotes():
    line = 'Austin,"Smith, John","He said ""hi""", 12.50 '
    assert read_rows(line) == [["Austin", "Smith, John", 'He said "hi"', "12.50"]]


def test_empty_fields_preserved():
    assert read_rows("a,,c,") == [["a", "", "c", ""]]


def test_tab_delimiter():
    assert read_rows("a\t\"b\tc\"\td", delimiter="\t") == [["a", "b\tc", "d"]]


def test_quoted_line_break_stays_in_one_record():
    headers, body = split_records('a,b\n"line1\nline2",2\n')
    assert headers == ["a", "b"]
    assert body == [["line1\nline2", "2"]]


def test_blank_and_whitespace_rows_dropped():
    assert read_rows("a,b\n\n , \n1,2\n") == [["a", "b"], ["1", "2"]]


def test_clean_headers_replaces_first_line_only():
    text = "Zip,City,State\n98101,Seattle,WA\n"
    cleaned = clean_csv_headers(text)
    lines = cleaned.split("\n")
    assert lines[0].split(",") == JOB_IMPORT_HEADERS
    assert lines[1] == "98101,Seattle,WA"
    assert len(JOB_IMPORT_HEADERS) == 22


def test_clean_headers_keeps_multiline_header_and_fields_intact():
    text = '"Zip\nCode",City\n98101,"Seattle,\nWA"\n'
    headers, body = split_records(clean_csv_headers(text))
    assert headers == JOB_IMPORT_HEADERS
    assert body == [["98101", "Seattle,\nWA"]]


def test_parse_rows_skips_blank_lines_and_normalizes():
    text = (
        "customer_name,total_amount,paycode,is_oem_client,date_recorded\r\n"
        "\"Doe, Jane\",150.25,2.0,yes,3/4/2024\r\n"
        "\r\n"
        "Bob,NULL,,no,2024-03-05\r\n"
    )
    rows = parse_rows(text)
    assert len(rows) == 2
    assert rows[0] == {
        "customer_name": "Doe, Jane",
        "total_amount": 150.25,
        "paycode": 2,
        "is_oem_client": True,
        "date_recorded": "2024-03-04",
    }
    assert rows[1]["total_amount"] == 0
    assert rows[1]["paycode"] is None
    assert rows[1]["is_oem_client"] is False


def test_preview_limits_rows_but_counts_all():
    body = "\n".join(f"C{i},{i}" for i in range(8))
    result = preview("customer_name,total_amount\n" + body)
    assert result["total_rows"] == 8
    assert len(result["rows"]) == 5
    assert result["rows"][0] == {"customer_name": "C0", "total_amount": 0}
    assert result["rows"][4]["total_amount"] == 4


def test_preview_of_empty_text():
    assert preview("") == {"rows": [], "total_rows": 0}
