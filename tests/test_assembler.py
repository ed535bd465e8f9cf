import pytest

from simplecomputer.assembler import (
    AssemblerError,
    assemble,
    assemble_file,
    assemble_line,
    main,
    mnemonic_code,
)
from simplecomputer.commands import Opcode, encode_command
from simplecomputer.machine import MEMORY_SIZE, Machine


@pytest.mark.parametrize(
    "name",
    ["NOP", "CPUINFO", "READ", "WRITE", "LOAD", "STORE", "ADD", "SUB", "DIVIDE",
     "MUL", "JUMP", "JNEG", "JZ", "HALT", "JNS", "JP", "SUBC"],
)
def test_mnemonic_codes(name):
    assert mnemonic_code(name) == Opcode[name]


@pytest.mark.parametrize("name", ["=", "=anything"])
def test_data_directive(name):
    assert mnemonic_code(name) is None


@pytest.mark.parametrize("name", ["XOR", "load", "FOO"])
def test_unknown_mnemonic(name):
    with pytest.raises(AssemblerError):
        mnemonic_code(name)


def test_instruction_line():
    assert assemble_line("00 READ 09") == (0, encode_command(0, Opcode.READ, 9))


def test_instruction_line_with_comment():
    assert assemble_line("01 LOAD 10 ; load it") == (
        1,
        encode_command(0, Opcode.LOAD, 10),
    )


def test_data_line():
    assert assemble_line("09 = +0010") == (9, 0x10)
    assert assemble_line("05 = +FFFF") == (5, 0xFFFF)


def test_negative_zero_data_allowed():
    assert assemble_line("05 = -0000") == (5, 0)


@pytest.mark.parametrize(
    "line",
    [
        "05 = -0001",
        "128 HALT 00",
        "-1 HALT 00",
        "00 XOR 01",
        "00 LOAD 200",
        "00 LOAD",
        "abc LOAD 1",
        "00 LOAD x",
        "",
    ],
)
def test_invalid_lines(line):
    with pytest.raises(AssemblerError):
        assemble_line(line)


def test_assemble_program():
    text = "00 READ 09\n01 LOAD 09\n02 HALT 00\n09 = +0001\n"
    memory = assemble(text)
    assert len(memory) == MEMORY_SIZE
    assert memory[0] == encode_command(0, Opcode.READ, 9)
    assert memory[2] == encode_command(0, Opcode.HALT, 0)
    assert memory[9] == 1
    assert all(memory[a] == 0 for a in range(10, MEMORY_SIZE))


def test_assemble_reports_line_number():
    with pytest.raises(AssemblerError, match="line 2"):
        assemble("00 HALT 00\n01 BOGUS 00\n")


def test_assemble_file_round_trip(tmp_path):
    source = tmp_path / "prog.sa"
    target = tmp_path / "prog.o"
    source.write_text("00 LOAD 05\n01 WRITE 05\n02 HALT 00\n05 = +0ABC\n")
    memory = assemble_file(source, target)
    loaded = Machine()
    loaded.load(target)
    assert loaded.memory == memory
    assert loaded.memory[5] == 0xABC


def test_main_success(tmp_path):
    source = tmp_path / "prog.sa"
    target = tmp_path / "prog.o"
    source.write_text("00 HALT 00\n")
    assert main([str(source), str(target)]) == 0
    assert target.stat().st_size == MEMORY_SIZE * 4


def test_main_missing_source(tmp_path, capsys):
    assert main([str(tmp_path / "none.sa"), str(tmp_path / "out.o")]) == 1
    assert "Can`t open" in capsys.readouterr().out


def test_main_invalid_syntax(tmp_path, capsys):
    source = tmp_path / "bad.sa"
    source.write_text("00 FOO 00\n")
    assert main([str(source), str(tmp_path / "out.o")]) == 1
    assert "Invalid syntax" in capsys.readouterr().out


def test_main_requires_two_arguments():
    with pytest.raises(SystemExit):
        main(["only-one.sa"])