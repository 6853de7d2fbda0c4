import pytest

from quill.environment import Environment
from quill.errors import ParserError
from quill.interpreter import Interpreter, evaluate, run_program
from quill.parser import parse_program
from quill.types import (
    Boolean, Error, Function, Integer, NULL, TRUE, FALSE, ValueType,
)


def check_integer(source, expected):
    result = run_program(source)
    assert isinstance(result, Integer), result
    assert result.value == expected


def check_error(source, message):
    result = run_program(source)
    assert isinstance(result, Error), result
    assert result.message == message


def test_integer_expressions():
    cases = [
        ('5', 5),
        ('10', 10),
        ('-5', -5),
        ('-10', -10),
        ('5 + 5 + 5 + 5 - 10', 10),
        ('2 * 2 * 2 * 2 * 2', 32),
        ('-50 + 100 + -50', 0),
        ('5 * 2 + 10', 20),
        ('5 + 2 * 10', 25),
        ('5 + 5 * 2 - 10', 5),
        ('20 + 2 * -10', 0),
        ('50 / 2 * 2 + 10', 60),
        ('2 * (5 + 10)', 30),
        ('3 * 3 * 3 + 10', 37),
        ('3 * (3 * 3) + 10', 37),
        ('(5 + 10 * 2 + 15 / 3) * 2 + -10', 50),
    ]
    for source, expected in cases:
        check_integer(source, expected)


def test_division_floors():
    check_integer('-7 / 2', -4)
    check_integer('7 / 2', 3)
    check_integer('7 / -2', -4)


def test_boolean_expressions():
    cases = [
        ('true', True),
        ('false', False),
        ('1 < 2', True),
        ('1 > 2', False),
        ('1 < 1', False),
        ('1 > 1', False),
        ('1 == 1', True),
        ('1 != 1', False),
        ('1 == 2', False),
        ('1 != 2', True),
        ('true == true', True),
        ('false == false', True),
        ('true == false', False),
        ('true != false', True),
        ('false != true', True),
        ('(1 < 2) == true', True),
        ('(1 < 2) == false', False),
        ('(1 > 2) == true', False),
        ('(1 > 2) == false', True),
    ]
    for source, expected in cases:
        assert run_program(source) == Boolean(expected)


def test_bang_operator():
    cases = [
        ('!true', False),
        ('!false', True),
        ('!5', False),
        ('!0', False),
        ('!!true', True),
        ('!!false', False),
        ('!!5', True),
        ('!if (false) { 1 }', True),
    ]
    for source, expected in cases:
        assert run_program(source) == Boolean(expected)


def test_booleans_compare_by_value():
    env = Environment()
    env.set('t', Boolean(True))
    assert env.get('t') is not TRUE
    assert run_program('t == true', env) is TRUE
    assert run_program('t != true', env) is FALSE


def test_if_else_expressions():
    cases = [
        ('if (true) { 10 }', 10),
        ('if (false) { 10 }', None),
        ('if (1) { 10 }', 10),
        ('if (0) { 1 } else { 2 }', 1),
        ('if (1 < 2) { 10 }', 10),
        ('if (1 > 2) { 10 }', None),
        ('if (1 > 2) { 10 } else { 20 }', 20),
        ('if (1 < 2) { 10 } else { 20 }', 10),
        ('if (true) { }', None),
    ]
    for source, expected in cases:
        if expected is None:
            assert run_program(source) == NULL
        else:
            check_integer(source, expected)


def test_return_statements():
    cases = [
        ('return 10;', 10),
        ('return 10; 9;', 10),
        ('return 2 * 5; 9;', 10),
        ('9; return 2 * 5; 9;', 10),
        ('if (10 > 1) { if (10 > 1) { return 10; } return 1; }', 10),
        ('let f = fn(x) { return x; x + 10; }; f(10);', 10),
        ('let f = fn(x) { let result = x + 10; return result; return 10; }; f(10);', 20),
    ]
    for source, expected in cases:
        check_integer(source, expected)


def test_bare_return_gives_null():
    assert run_program('return; 5') == NULL
    assert run_program('let f = fn() { return; 5 }; f()') == NULL


def test_return_inside_call_does_not_end_the_caller():
    check_integer('let f = fn() { return 1; }; f(); 2', 2)


def test_error_handling():
    cases = [
        ('5 + true;', 'type mismatch: INTEGER + BOOLEAN'),
        ('5 + true; 5;', 'type mismatch: INTEGER + BOOLEAN'),
        ('true == 1', 'type mismatch: BOOLEAN == INTEGER'),
        ('-true', 'unknown operator: -BOOLEAN'),
        ('true + false;', 'unknown operator: BOOLEAN + BOOLEAN'),
        ('true < false;', 'unknown operator: BOOLEAN < BOOLEAN'),
        ('5; true + false; 5', 'unknown operator: BOOLEAN + BOOLEAN'),
        ('if (10 > 1) { true + false; }', 'unknown operator: BOOLEAN + BOOLEAN'),
        ('if (10 > 1) { if (10 > 1) { return true + false; } return 1; }',
         'unknown operator: BOOLEAN + BOOLEAN'),
        ('foobar', 'identifier not found: foobar'),
        ('if (foobar) { 1 }', 'identifier not found: foobar'),
        ('5(1)', 'not a function: INTEGER'),
        ('1 / 0', 'division by zero: INTEGER / INTEGER'),
        ('let f = fn() { 1 }; f == f', 'unknown operator: FUNCTION == FUNCTION'),
        ('if (false) { 1 } == if (false) { 2 }', 'unknown operator: NULL == NULL'),
    ]
    for source, message in cases:
        check_error(source, message)


def test_errors_propagate_before_later_operands_run():
    check_error('missing + alsoMissing', 'identifier not found: missing')
    check_error('1 + alsoMissing', 'identifier not found: alsoMissing')
    check_error('let f = fn(x) { x }; f(1, foo, bar)', 'identifier not found: foo')
    check_error('nope(1)', 'identifier not found: nope')
    check_error('let a = -true; a', 'unknown operator: -BOOLEAN')


def test_let_statements():
    check_integer('let a = 5; a;', 5)
    check_integer('let a = 5 * 5; a;', 25)
    check_integer('let a = 5; let b = a; b;', 5)
    check_integer('let a = 5; let b = a; let c = a + b + 5; c;', 15)
    assert run_program('let a = 5;') is None


def test_function_object():
    result = run_program('fn(x) { x + 2; };')
    assert isinstance(result, Function)
    assert result.type() is ValueType.FUNCTION
    assert [p.value for p in result.parameters] == ['x']
    assert str(result.body) == '(x + 2)'
    assert result.inspect() == 'fn(x) {\n(x + 2)\n}'


def test_function_application():
    cases = [
        ('let identity = fn(x) { x; }; identity(5);', 5),
        ('let identity = fn(x) { return x; }; identity(5);', 5),
        ('let double = fn(x) { x * 2; }; double(5);', 10),
        ('let add = fn(x, y) { x + y; }; add(5, 5);', 10),
        ('let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));', 20),
        ('fn(x) { x; }(5)', 5),
    ]
    for source, expected in cases:
        check_integer(source, expected)


def test_closures():
    source = 'let newAdder = fn(x) { fn(y) { x + y } }; let addTwo = newAdder(2); addTwo(3);'
    check_integer(source, 5)


def test_closures_share_their_defining_environment():
    # `later` is bound after the closure is created and still visible through it
    check_integer('let f = fn() { later }; let later = 5; f()', 5)
    check_integer('let x = 1; let f = fn() { x }; let x = 2; f()', 2)


def test_calls_use_the_definition_environment_not_the_callers():
    source = '''
    let x = 10;
    let getX = fn() { x };
    let shadow = fn(x) { getX() };
    shadow(99);
    '''
    check_integer(source, 10)


def test_recursion():
    source = '''
    let fib = fn(n) { if (n < 2) { n } else { fib(n - 1) + fib(n - 2) } };
    fib(15);
    '''
    check_integer(source, 610)


def test_arity_is_not_checked():
    assert run_program('let f = fn(a, b) { b }; f(1)') == NULL
    check_integer('let f = fn(a) { a }; f(1, 2, 3)', 1)
    assert run_program('let f = fn() { }; f()') == NULL
    assert run_program('let f = fn() { let a = 1; }; f()') == NULL


def test_session_environment_keeps_bindings():
    env = Environment()
    assert run_program('let a = 5;', env) is None
    assert run_program('let double = fn(x) { x * 2 };', env) is None
    assert run_program('double(a)', env) == Integer(10)


def test_run_program_refuses_programs_with_parser_errors():
    with pytest.raises(ParserError) as info:
        run_program('let x 5;')
    assert info.value.errors == ['expected next token to be =, but got INT instead']


def test_module_level_evaluate():
    env = Environment()
    program = parse_program('let a = 2; a * 21')
    assert evaluate(program, env) == Integer(42)
    assert env.get('a') == Integer(2)


def test_inspect():
    assert run_program('42').inspect() == '42'
    assert run_program('-42').inspect() == '-42'
    assert run_program('1 < 2').inspect() == 'true'
    assert run_program('if (false) { 1 }').inspect() == 'null'
    assert run_program('foo').inspect() == 'ERROR: identifier not found: foo'


def test_debug_trace(tmp_path):
    trace = tmp_path / 'debug.txt'
    interpreter = Interpreter(debug_level=3, debug_file=str(trace))
    program = parse_program('let f = fn(x) { if (x > 1) { x } else { 0 } }; f(2); nope')
    result = interpreter.run(program)
    interpreter.close()
    assert result == Error('identifier not found: nope')
    lines = trace.read_text(encoding='utf-8').splitlines()
    assert lines[0] == 'let f = fn(x) {'
    assert 'call fn(x) with (2)' in lines
    assert '  if (x > 1) -> true (truthy)' in lines
    assert 'return 2' in lines
    assert lines[-1] == 'error: identifier not found: nope'


def test_debug_trace_to_stdout(capsys):
    interpreter = Interpreter(debug_level=1, debug_file=None)
    interpreter.run(parse_program('fn(a, b) { a + b }(1, 2)'))
    out = capsys.readouterr().out.splitlines()
    assert out == ['call fn(a, b) with (1, 2)', 'return 3']


def test_deep_recursion_hits_the_host_limit():
    source = 'let loop = fn(n) { loop(n + 1) }; loop(0)'
    with pytest.raises(RecursionError):
        run_program(source)


def test_return_from_if_used_as_a_value_leaves_the_function():
    cases = [
        ('let f = fn() { let x = if (true) { return 5; }; x + 1 }; f()', 5),
        ('let f = fn() { 1 + if (true) { return 2; } }; f()', 2),
        ('let f = fn() { if (true) { return 3; } + 1 }; f()', 3),
        ('let f = fn() { -if (true) { return 4; } }; f()', 4),
        ('let g = fn(a, b) { 0 }; let f = fn() { g(1, if (true) { return 6; }) }; f()', 6),
        ('let f = fn() { if (if (true) { return 7; }) { 0 } }; f()', 7),
        ('let x = if (true) { return 8; }; 9', 8),
    ]
    for source, expected in cases:
        check_integer(source, expected)


def test_integer_arithmetic_wraps_at_64_bits():
    check_integer('9223372036854775807 + 1', -9223372036854775808)
    check_integer('-9223372036854775807 - 2', 9223372036854775807)
    check_integer('9223372036854775807 * 2', -2)
    check_integer('let min = -9223372036854775807 - 1; -min', -9223372036854775808)
    check_integer('let min = -9223372036854775807 - 1; min / -1', -9223372036854775808)
