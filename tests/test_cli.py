import argparse

import pytest

from conftest import KEY
from vaudenay.cli import DEFAULT_HOST, DEFAULT_PORT, build_parser, main, parse_target, run_attack
from vaudenay.oracle import LocalOracle


def test_parse_target():
    assert parse_target("localhost:1337") == ("localhost", 1337)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_target("localhost")


def test_attack_defaults():
    args = build_parser().parse_args(["attack"])
    assert args.tcp == (DEFAULT_HOST, DEFAULT_PORT)
    assert len(bytes.fromhex(args.hex)) == 48
    assert args.url is None


def test_tcp_and_url_are_exclusive():
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(["attack", "--tcp", "a:1", "--url", "http://b"])
    assert excinfo.value.code == 2


def test_demo(capsys):
    assert main(["demo", "-m", "hello padding oracle"]) == 0
    assert "Match ? True" in capsys.readouterr().out


def test_attack_over_http(http_server, capsys):
    url, app = http_server
    ciphertext = app.config["ORACLE"].encrypt(b"cli attack")
    assert main(["attack", "--hex", ciphertext.hex(), "--url", url, "--unpad"]) == 0
    assert "[+] Result: b'cli attack'" in capsys.readouterr().out


def test_attack_over_tcp_parallel(tcp_server, capsys):
    host, port = tcp_server()
    ciphertext = LocalOracle(KEY).encrypt(b"two blocks of secret text")
    argv = ["attack", "--hex", ciphertext.hex(), "--tcp", f"{host}:{port}", "-w", "2", "--unpad"]
    assert main(argv) == 0
    assert "b'two blocks of secret text'" in capsys.readouterr().out


def test_attack_bad_hex(capsys):
    assert main(["attack", "--hex", "zz", "--url", "http://127.0.0.1:9"]) == 1
    assert "[!] Invalid hex" in capsys.readouterr().out


def test_attack_bad_length(capsys):
    assert main(["attack", "--hex", "00" * 17, "--url", "http://127.0.0.1:9"]) == 1
    assert "[!] Attack failed" in capsys.readouterr().out


def test_parallel_query_count_matches_sequential(capsys):
    ciphertext = LocalOracle(KEY).encrypt(b"count every query, even in parallel")

    sequential = run_attack(lambda: LocalOracle(KEY), ciphertext, 1, False)
    sequential_out = capsys.readouterr().out
    parallel = run_attack(lambda: LocalOracle(KEY), ciphertext, 3, True)
    parallel_out = capsys.readouterr().out

    assert parallel == sequential
    assert "[-] --verbose has no effect with --workers > 1" in parallel_out
    count = [line for line in sequential_out.splitlines() if line.endswith("oracle queries")]
    assert len(count) == 1 and count[0] != "[*] 0 oracle queries"
    assert count[0] in parallel_out


@pytest.mark.parametrize("key", ["zz", "00" * 17])
def test_serve_rejects_bad_key(key, capsys):
    assert main(["serve", "--key", key]) == 1
    assert "[!] Invalid key" in capsys.readouterr().out
