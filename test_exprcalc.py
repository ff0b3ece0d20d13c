import pytest

from exprcalc import PROMPT, evaluate_line, format_result, main, repl


def feed(*lines):
    """A stand-in for `input` that answers with `lines`, then hits end of input."""
    answers = iter(lines)
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        try:
            return next(answers)
        except StopIteration:
            raise EOFError from None

    read.prompts = prompts
    return read


def test_format_result():
    assert format_result(6561.0) == "6561"
    assert format_result(-10.0 / 3.0) == "-3.33333"
    assert format_result(-10.0 / 3.0, digits=10) == "-3.333333333"
    assert format_result(1e300) == "1e+300"


def test_evaluate_line():
    assert evaluate_line("3^2^3") == ("6561", True)
    assert evaluate_line("2/0") == ("Divide by zero", False)
    assert evaluate_line("") == ("Empty input expression", False)
    assert evaluate_line("(12+4)^-0.5", postfix=True) == ("12 4 + 0.5 neg ^ = 0.25", True)


def test_repl_session(capsys):
    read = feed("1 + 2", "(1-2", "quit", "never read")
    repl(read)
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "ExprCalc - Simple Calculator",
        "    Version 0.1.0",
        "3",
        "Brackets not matched",
    ]
    assert read.prompts == [PROMPT] * 3


def test_repl_stops_at_end_of_input(capsys):
    read = feed("5-10/-5", "abc")
    repl(read)
    out = capsys.readouterr().out.splitlines()
    assert out[2:] == ["7", "Unrecognized token", ""]
    assert len(read.prompts) == 3


def test_repl_stops_on_interrupt(capsys):
    def read(prompt):
        raise KeyboardInterrupt

    repl(read)
    assert capsys.readouterr().out.endswith("Version 0.1.0\n\n")


def test_main_one_shot(capsys):
    assert main(["3^2^3", "5-3*5"]) == 0
    assert capsys.readouterr().out == "6561\n-10\n"


def test_main_reports_failures(capsys):
    assert main(["1.0 2.0", "1+1"]) == 1
    assert capsys.readouterr().out == "Too many arguments found for operations\n2\n"


def test_main_postfix(capsys):
    assert main(["--postfix", "1 + 2 * 3"]) == 0
    assert capsys.readouterr().out == "1 2 3 * + = 7\n"


def test_main_interactive(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", feed("2**10"))
    assert main([]) == 0
    assert "1024" in capsys.readouterr().out.splitlines()


def test_main_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == "exprcalc 0.1.0"


def test_main_rejects_bad_digits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--digits", "0", "1"])
    assert excinfo.value.code == 2
