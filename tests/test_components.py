"""
CHIP-8 VM — Component Tests

ALU helpers, memory, register file, timers, framebuffer and keypad,
each exercised on its own without the step driver.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from chip8_vm.config import DrawEdge, KeyWaitPolicy
from chip8_vm.cpu import alu
from chip8_vm.cpu.regs import Registers
from chip8_vm.errors import OutOfBoundsMemoryAccess, StackOverflow, StackUnderflow
from chip8_vm.mem.memory import Memory
from chip8_vm.periph.display import Display
from chip8_vm.periph.keypad import KeyWait, normalize_keypad, first_pressed
from chip8_vm.periph.timer import TimerPeripheral


def _keys(*down):
    return tuple(i in down for i in range(16))


# ═══════════════════════════════════════════════
# ALU
# ═══════════════════════════════════════════════

class TestALU:

    def test_add_carry(self):
        assert alu.add8(250, 10) == (4, 1)
        assert alu.add8(5, 10) == (15, 0)
        assert alu.add8(0xFF, 0x01) == (0, 1)

    def test_sub_not_borrow(self):
        assert alu.sub8(5, 10) == (251, 0)
        assert alu.sub8(10, 5) == (5, 1)
        assert alu.sub8(7, 7) == (0, 1)

    def test_shifts(self):
        assert alu.shr8(0x03) == (0x01, 1)
        assert alu.shr8(0x02) == (0x01, 0)
        assert alu.shl8(0x81) == (0x02, 1)
        assert alu.shl8(0x40) == (0x80, 0)

    def test_logic(self):
        assert alu.or8(0x0C, 0x0A) == 0x0E
        assert alu.and8(0x0C, 0x0A) == 0x08
        assert alu.xor8(0x0C, 0x0A) == 0x06

    def test_add_wrap(self):
        assert alu.add_wrap8(0xFF, 0x02) == 0x01

    def test_bcd(self):
        assert alu.bcd3(254) == bytes([2, 5, 4])
        assert alu.bcd3(7) == bytes([0, 0, 7])
        assert alu.bcd3(100) == bytes([1, 0, 0])

    def test_lcg_sequence(self):
        seed, seen = 123, []
        for _ in range(6):
            seed = alu.lcg8(seed, 42, 31, 13)
            seen.append(seed)
        assert seen == [12, 10, 0, 5, 7, 4]


# ═══════════════════════════════════════════════
# Memory
# ═══════════════════════════════════════════════

class TestMemory:

    def test_size(self):
        mem = Memory()
        assert len(mem) == 4096
        assert mem.size == 4096

    def test_read16_big_endian(self):
        mem = Memory()
        mem.write8(0x300, 0x12)
        mem.write8(0x301, 0x34)
        assert mem.read16(0x300) == 0x1234

    def test_write8_masks(self):
        mem = Memory()
        mem.write8(0x300, 0x1FF)
        assert mem.read8(0x300) == 0xFF

    def test_read_out_of_range(self):
        mem = Memory()
        with pytest.raises(OutOfBoundsMemoryAccess) as exc:
            mem.read8(0x1000)
        assert exc.value.address == 0x1000
        with pytest.raises(OutOfBoundsMemoryAccess):
            mem.read8(-1)

    def test_block_write_is_all_or_nothing(self):
        mem = Memory()
        before = mem.snapshot()
        with pytest.raises(OutOfBoundsMemoryAccess) as exc:
            mem.write_block(0xFFE, bytes([1, 2, 3]))
        assert exc.value.address == 0x1000
        assert mem.snapshot() == before

    def test_block_roundtrip(self):
        mem = Memory()
        mem.write_block(0xFFD, bytes([7, 8, 9]))
        assert mem.read_block(0xFFD, 3) == bytes([7, 8, 9])


# ═══════════════════════════════════════════════
# Registers
# ═══════════════════════════════════════════════

class TestRegisters:

    def test_reset_state(self):
        regs = Registers()
        assert regs.PC == 0x200
        assert regs.I == 0
        assert regs.SP == 0
        assert bytes(regs.V) == bytes(16)

    def test_vf_alias(self):
        regs = Registers()
        regs.VF = 0x101
        assert regs.V[15] == 0x01

    def test_push_pop_lifo(self):
        regs = Registers()
        regs.push(0x202)
        regs.push(0x304)
        assert regs.pop() == 0x304
        assert regs.pop() == 0x202

    def test_overflow(self):
        regs = Registers(stack_size=16)
        for i in range(16):
            regs.push(0x200 + 2 * i)
        with pytest.raises(StackOverflow):
            regs.push(0x300)
        assert regs.SP == 16

    def test_underflow(self):
        with pytest.raises(StackUnderflow):
            Registers().pop()

    def test_display(self):
        regs = Registers()
        assert regs.display().startswith("PC=0200 I=0000 SP=00")


# ═══════════════════════════════════════════════
# Timers
# ═══════════════════════════════════════════════

class TestTimers:

    def test_decrement_to_zero(self):
        timer = TimerPeripheral()
        timer.set_delay(2)
        timer.set_sound(1)
        assert timer.beeping
        timer.update()
        assert (timer.delay, timer.sound) == (1, 0)
        assert not timer.beeping
        timer.update()
        timer.update()
        assert (timer.delay, timer.sound) == (0, 0)


# ═══════════════════════════════════════════════
# Display
# ═══════════════════════════════════════════════

class TestDisplay:

    def test_shape(self):
        assert Display().shape == (32, 64)

    def test_xor_and_collision(self):
        disp = Display()
        assert disp.draw_sprite(0, 0, b'\xF0') == 0
        assert disp.get_display_buffer()[0, :4].tolist() == [1, 1, 1, 1]
        assert disp.draw_sprite(0, 0, b'\xF0') == 1
        assert not disp.get_display_buffer().any()

    def test_partial_overlap_collides(self):
        disp = Display()
        disp.draw_sprite(0, 0, b'\x80')
        assert disp.draw_sprite(0, 0, b'\xC0') == 1
        assert disp.pixel(0, 0) == 0
        assert disp.pixel(1, 0) == 1

    def test_no_overlap_no_collision(self):
        disp = Display()
        disp.draw_sprite(0, 0, b'\xF0')
        assert disp.draw_sprite(0, 0, b'\x0F') == 0

    def test_wrap_right_and_bottom(self):
        disp = Display(edge=DrawEdge.WRAP)
        disp.draw_sprite(62, 31, b'\xFF\xFF')
        fb = disp.get_display_buffer()
        assert fb.sum() == 16
        assert fb[31, 62] == 1 and fb[31, 5] == 1
        assert fb[0, 63] == 1 and fb[0, 0] == 1

    def test_clip_right_and_bottom(self):
        disp = Display(edge=DrawEdge.CLIP)
        disp.draw_sprite(62, 31, b'\xFF\xFF')
        fb = disp.get_display_buffer()
        assert fb.sum() == 2
        assert fb[31, 62] == 1 and fb[31, 63] == 1
        assert fb[0, 0] == 0

    def test_clip_wraps_origin(self):
        disp = Display(edge=DrawEdge.CLIP)
        disp.draw_sprite(66, 33, b'\x80')
        assert disp.pixel(2, 1) == 1

    def test_buffer_is_read_only(self):
        fb = Display().get_display_buffer()
        assert fb.dtype == np.uint8
        with pytest.raises(ValueError):
            fb[0, 0] = 1

    def test_unlocked_buffer_does_not_reach_machine(self):
        disp = Display()
        fb = disp.get_display_buffer()
        fb.flags.writeable = True
        fb[0, 0] = 1
        assert disp.pixel(0, 0) == 0
        assert not disp.get_display_buffer().any()

    def test_draw_twice_restores_lit_pattern(self):
        disp = Display()
        disp.draw_sprite(0, 0, b"\xAA\x55\xFF")
        disp.draw_sprite(60, 30, b"\xF0\xF0\xF0")
        before = disp.get_display_buffer()
        # overlaps both patterns, and wraps past the right and bottom edges
        sprite = b"\x3C\xC3\x81\xFF"
        assert disp.draw_sprite(62, 31, sprite) == 1
        assert disp.draw_sprite(62, 31, sprite) == 1
        assert np.array_equal(disp.get_display_buffer(), before)
        assert disp.draw_sprite(2, 0, sprite) == 1
        disp.draw_sprite(2, 0, sprite)
        assert np.array_equal(disp.get_display_buffer(), before)

    def test_clear(self):
        disp = Display()
        disp.draw_sprite(10, 10, b'\xFF')
        disp.clear()
        assert not disp.get_display_buffer().any()


# ═══════════════════════════════════════════════
# Keypad
# ═══════════════════════════════════════════════

class TestKeypad:

    def test_none_is_all_up(self):
        assert normalize_keypad(None) == (False,) * 16

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            normalize_keypad([False] * 15)

    def test_first_pressed(self):
        assert first_pressed(_keys(9, 2)) == 2
        assert first_pressed(_keys()) is None

    def test_press_policy(self):
        wait = KeyWait(register=3)
        assert wait.advance(_keys(), KeyWaitPolicy.PRESS) == (wait, None)
        assert wait.advance(_keys(4, 6), KeyWaitPolicy.PRESS) == (None, 4)

    def test_release_policy(self):
        wait = KeyWait(register=3)
        nxt, key = wait.advance(_keys(7), KeyWaitPolicy.RELEASE)
        assert key is None
        assert nxt == KeyWait(register=3, captured_key=7)
        # still held
        assert nxt.advance(_keys(7, 1), KeyWaitPolicy.RELEASE) == (nxt, None)
        # released; other keys do not matter
        assert nxt.advance(_keys(1), KeyWaitPolicy.RELEASE) == (None, 7)
